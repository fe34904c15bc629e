"""
Command-line interface for the reel translation pipeline.
"""

import argparse
import logging
import pathlib

from dotenv import load_dotenv

from .config import PipelineConfig
from .errors import PipelineError
from .models import RemoteSource, UploadSource
from .pipeline import Pipeline

logger = logging.getLogger("lipdub")


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    ap = argparse.ArgumentParser(description="Translate a short video and lip-sync it to the new audio")

    # IO
    src = ap.add_mutually_exclusive_group(required=True)
    src.add_argument("--input_video", help="Local video file to translate")
    src.add_argument("--video-url", help="Shareable reel URL, resolved through the lookup service")
    ap.add_argument(
        "--target-language",
        required=True,
        help="Language name or code (e.g. 'Spanish' or 'es')",
    )
    ap.add_argument("--workdir", default=".work")
    ap.add_argument("--output-dir", default=None, help="Where final videos go (default: <workdir>/output)")

    # Models
    ap.add_argument(
        "--stt", choices=["local", "openai"], default="openai", help="Speech-to-text backend"
    )
    ap.add_argument("--whisper-model", default="whisper-1")
    ap.add_argument("--local-whisper-model", default="base.en")
    ap.add_argument("--translation-model", default="gpt-4o-mini")
    ap.add_argument("--elevenlabs-model-id", default="eleven_multilingual_v2")
    ap.add_argument(
        "--voice-gender", default="male", help="Preferred voice gender within the target language"
    )

    # Video / lip-sync
    ap.add_argument("--downscale-height", type=int, default=480)
    ap.add_argument("--downscale-fps", type=int, default=24)
    ap.add_argument(
        "--lipsync-timeout",
        type=float,
        default=900.0,
        help="Seconds to wait for the lip-sync job (0 waits forever)",
    )

    ap.add_argument(
        "--keep-failed-artifacts",
        action="store_true",
        help="Keep intermediate files of a failed run for debugging",
    )
    ap.add_argument("--progress", action="store_true", help="Show download progress bars")
    ap.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    return ap.parse_args(argv)


def build_config(args: argparse.Namespace) -> PipelineConfig:
    return PipelineConfig.from_env(
        workdir=pathlib.Path(args.workdir),
        output_dir=pathlib.Path(args.output_dir) if args.output_dir else None,
        stt_backend=args.stt,
        transcription_model=args.whisper_model,
        local_whisper_model=args.local_whisper_model,
        translation_model=args.translation_model,
        tts_model_id=args.elevenlabs_model_id,
        preferred_gender=args.voice_gender,
        downscale_height=args.downscale_height,
        downscale_fps=args.downscale_fps,
        lipsync_timeout=args.lipsync_timeout or None,
        keep_failed_artifacts=args.keep_failed_artifacts,
        show_progress=args.progress,
    )


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    # .env in the project root, then the current directory
    project_root = pathlib.Path(__file__).parent.parent.parent
    env_path = project_root / ".env"
    if env_path.exists():
        load_dotenv(env_path)
    else:
        load_dotenv()

    args = parse_args(argv)
    setup_logging(args.verbose)
    config = build_config(args)

    if args.video_url:
        source = RemoteSource(url=args.video_url)
    else:
        video = pathlib.Path(args.input_video)
        if not video.is_file():
            raise SystemExit(f"Input video not found: {video}")
        source = UploadSource(data=video.read_bytes(), filename=video.name)

    try:
        with Pipeline(config) as pipeline:
            result = pipeline.execute(source, args.target_language)
    except PipelineError as e:
        logger.error(f"{e.kind}: {e}")
        raise SystemExit(1) from e

    logger.info(f"Voice: {result.voice.name}; session {result.session.id}")
    print(result.final_path)


if __name__ == "__main__":
    main()
