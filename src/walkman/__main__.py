"""
Command-line entry point.

    python -m walkman serve                 # token service on $PORT
    python -m walkman listen episode.mp3    # voice-control local playback

While listening, typed lines are sent to the session as text events;
"quit" or EOF ends the session.
"""

import argparse
import asyncio
import logging
import sys

from .config import WalkmanConfig
from .errors import WalkmanError
from .remote import VoiceRemote

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="walkman", description="Voice-controlled audio playback")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the ephemeral token service")
    serve.add_argument("--host", default=None, help="Bind address")
    serve.add_argument("--port", type=int, default=None, help="Port (default: $PORT or 3000)")

    listen = subparsers.add_parser("listen", help="Play a file and control it by voice")
    listen.add_argument("audio_file", help="Audio file to play")
    listen.add_argument("--paused", action="store_true", help="Load the file without starting playback")

    return parser


async def listen(config: WalkmanConfig, audio_file: str, paused: bool = False) -> int:
    from .audio import FileTransport, RemoteAudioPlayer

    transport = FileTransport(audio_file)
    remote = VoiceRemote(config, transport, remote_audio=RemoteAudioPlayer())
    if not paused:
        remote.controller.set_pause(False)

    loop = asyncio.get_running_loop()
    try:
        await remote.start()
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            text = line.strip()
            if not line or text.lower() == "quit":
                break
            if text and not remote.send_text(text):
                logger.warning("Session not active, message not sent")
    except WalkmanError as e:
        logger.error(f"Session failed: {e}")
        return 1
    finally:
        await remote.stop()
        transport.close()
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    config = WalkmanConfig.from_env()

    if args.command == "serve":
        import uvicorn
        from .server import create_app

        uvicorn.run(
            create_app(config),
            host=args.host or config.host,
            port=args.port or config.port,
            log_level=args.log_level.lower(),
        )
        return 0

    try:
        return asyncio.run(listen(config, args.audio_file, paused=args.paused))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
