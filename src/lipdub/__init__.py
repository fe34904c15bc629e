"""
Reel Translator - translated, lip-synced video from a single short clip.

A staged pipeline for:
- Acquiring a video from an upload or a remote reel URL
- Extracting audio with ffmpeg
- Transcribing speech (OpenAI Whisper or local faster-whisper)
- Translating the transcript with GPT
- Picking an ElevenLabs voice and synthesizing the translation
- Lip-syncing the downscaled video to the new audio on fal.ai
"""

__version__ = "0.1.0"
