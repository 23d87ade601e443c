# File: voicecrm/cli.py
"""Command line entry point: serve the API, list microphones, record or draft from a file."""
import argparse
import asyncio
import json
import logging
import mimetypes
import time
from pathlib import Path

from voicecrm.core.config.settings import settings
from voicecrm.core.errors import DeviceError
from voicecrm.core.logging_config import configure_logging

logger = logging.getLogger(__name__)


def _print_json(payload) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _run_pipeline(clip) -> dict:
    from voicecrm.api.schemas import serialize_pipeline_result
    from voicecrm.features.transcription.service.api import build_gateway
    from voicecrm.features.voice_pipeline.service.pipeline import VoicePipeline

    pipeline = VoicePipeline(build_gateway())
    return serialize_pipeline_result(asyncio.run(pipeline.process_clip(clip)))


def cmd_devices(args) -> int:
    from voicecrm.features.audio_capture.data.sounddevice_adapter import list_input_devices

    for device in list_input_devices():
        print(f"[{device.get('index')}] {device.get('name')} "
              f"({device.get('max_input_channels')} ch, {device.get('default_samplerate')} Hz)")
    return 0


def cmd_record(args) -> int:
    from voicecrm.features.audio_capture.domain.models import CaptureConfig
    from voicecrm.features.audio_capture.service.controller import AudioCaptureController

    settings.ensure_dirs()
    config = CaptureConfig(
        sample_rate_hz=args.rate,
        channels=settings.CAPTURE_CHANNELS,
        device_name=args.device or settings.CAPTURE_DEVICE_NAME or None,
    )
    controller = AudioCaptureController(config=config, playback_dir=settings.RECORDINGS_DIR)

    try:
        controller.start()
    except DeviceError as e:
        print(f"Cannot record: {e}")
        return 1

    if args.duration:
        print(f"Recording for {args.duration}s...")
        time.sleep(args.duration)
    else:
        input("Recording... press Enter to stop.")

    clip = controller.stop()
    if clip is None:
        print(f"Recording failed: {controller.last_error}")
        return 1

    print(f"Saved {clip.playback_path}")
    _print_json(_run_pipeline(clip))
    return 0


def cmd_draft(args) -> int:
    from voicecrm.features.audio_capture.domain.models import AudioClip

    path = Path(args.audio_path)
    mime_type = mimetypes.guess_type(path.name)[0] or "audio/wav"
    clip = AudioClip.from_upload(path.read_bytes(), mime_type)
    _print_json(_run_pipeline(clip))
    return 0


def cmd_serve(args) -> int:
    import uvicorn

    settings.ensure_dirs()
    uvicorn.run("voicecrm.main:app", host=args.host, port=args.port)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(prog="voicecrm")
    parser.add_argument("--log-level", help="Overrides VOICECRM_LOG_LEVEL.")
    sub = parser.add_subparsers(dest="command")

    serve_cmd = sub.add_parser("serve")
    serve_cmd.add_argument("--host", default=settings.API_HOST)
    serve_cmd.add_argument("--port", type=int, default=settings.API_PORT)

    sub.add_parser("devices")

    record_cmd = sub.add_parser("record")
    record_cmd.add_argument("--duration", type=int, help="Seconds. Omit for manual stop.")
    record_cmd.add_argument("--device", help="Preferred device name substring.")
    record_cmd.add_argument("--rate", type=int, default=settings.CAPTURE_SAMPLE_RATE_HZ, help="Sample rate.")

    draft_cmd = sub.add_parser("draft")
    draft_cmd.add_argument("audio_path", help="Path to an audio file.")

    args = parser.parse_args()
    configure_logging(args.log_level)

    commands = {
        "serve": cmd_serve,
        "devices": cmd_devices,
        "record": cmd_record,
        "draft": cmd_draft,
    }
    if args.command not in commands:
        parser.print_help()
        return 2
    return commands[args.command](args)


if __name__ == "__main__":
    raise SystemExit(main())
