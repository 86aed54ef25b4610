import argparse
import asyncio
import dataclasses
import logging
import sys
from pathlib import Path

from claudeterm.config import load_config
from claudeterm.logging_setup import configure
from claudeterm.streaming.errors import StreamRenderError
from claudeterm.streaming.render import get_profile

logger = logging.getLogger("claudeterm")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="ClaudeTerm - Claude Code with live-rendered markdown"
    )
    parser.add_argument(
        "--model", default=None,
        help="Claude model to use (e.g. sonnet, opus)",
    )
    parser.add_argument(
        "--continue", "-c", action="store_true", dest="continue_session",
        help="Resume the most recent session",
    )
    parser.add_argument(
        "--resume", "-r", default=None, metavar="SESSION_ID",
        help="Resume a specific session by ID",
    )
    parser.add_argument(
        "--show-thinking", action="store_true", default=None,
        help="Display thinking blocks in dim style",
    )
    parser.add_argument(
        "--style", choices=("dark", "light", "plain"), default=None,
        help="Markdown style profile (default: dark)",
    )
    parser.add_argument(
        "--code-theme", default=None,
        help="Pygments theme for code blocks",
    )
    parser.add_argument(
        "--width", type=int, default=None,
        help="Render width in columns (default: terminal width)",
    )
    parser.add_argument(
        "--no-partial", action="store_false", dest="partial", default=None,
        help="Don't preview incomplete blocks while streaming",
    )
    parser.add_argument(
        "--markdown", default=None, metavar="PATH",
        help="Stream a markdown file ('-' for stdin) through the renderer and exit",
    )
    parser.add_argument(
        "--chunk-size", type=int, default=16,
        help="Characters per write in --markdown mode (default: 16)",
    )
    parser.add_argument(
        "--delay", type=float, default=0.0,
        help="Seconds to wait between writes in --markdown mode",
    )
    parser.add_argument(
        "--config", type=Path, default=None,
        help="Path to a TOML config file",
    )
    parser.add_argument(
        "--log-level", default=None,
        help="Log level for the log file (default: INFO)",
    )
    parser.add_argument(
        "prompt", nargs="*",
        help="One-shot prompt (otherwise enters interactive mode)",
    )
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    config = load_config(
        args.config,
        claude_model=args.model,
        style=args.style,
        code_theme=args.code_theme,
        width=args.width,
        partial=args.partial,
        show_thinking=args.show_thinking,
        log_level=args.log_level,
    )
    configure(config.log_level)
    logger.info("Starting with %s", config)

    try:
        profile = get_profile(config.style)
    except StreamRenderError as e:
        print(f"Error: {e}")
        sys.exit(2)
    if config.code_theme:
        profile = dataclasses.replace(profile, code_theme=config.code_theme)

    from claudeterm.ui.console import make_console
    console = make_console(width=config.width, profile=profile)

    if args.markdown:
        try:
            asyncio.run(
                _stream_markdown(console, profile, config, args.markdown,
                                 args.chunk_size, args.delay)
            )
        except (OSError, StreamRenderError) as e:
            logger.exception("Markdown streaming failed")
            print(f"Error: {e}")
            sys.exit(1)
        return

    from claudeterm.claude.subprocess_backend import SubprocessBackend
    backend = SubprocessBackend(claude_path=config.claude_path, model=config.claude_model)

    # Handle session resume flags
    if args.continue_session:
        backend.last_session_id = "last"
    elif args.resume:
        backend.last_session_id = args.resume

    from claudeterm.ui.renderer import VisualRenderer
    renderer = VisualRenderer(
        console, profile,
        partial=config.partial,
        show_thinking=config.show_thinking,
    )

    from claudeterm.app import ClaudeTermApp
    if args.prompt:
        prompt = " ".join(args.prompt)
        app = ClaudeTermApp(backend, input_source=None, renderer=renderer, width=config.width)
        asyncio.run(_one_shot(app, backend, prompt))
    else:
        from claudeterm.ui.input_prompt import RichInput
        app = ClaudeTermApp(backend, RichInput(console), renderer=renderer, width=config.width)
        asyncio.run(app.run())


async def _one_shot(app, backend, prompt):
    """Run a single prompt, render the response, and exit."""
    try:
        await app.process_prompt(prompt)
    finally:
        await backend.close()


async def _stream_markdown(console, profile, config, path, chunk_size, delay):
    """Feed a markdown document to the renderer in fixed-size chunks."""
    from claudeterm.streaming.renderer import StreamRenderer
    from claudeterm.streaming.sinks import console_sink, drain

    if path == "-":
        text = sys.stdin.read()
    else:
        text = Path(path).read_text(encoding="utf-8")

    sink = console_sink(console)
    renderer = StreamRenderer(
        sink, profile,
        width=console.width,
        partial=config.partial and console.is_terminal,
    )
    step = max(1, chunk_size)
    for start in range(0, len(text), step):
        renderer.write(text[start:start + step])
        if delay > 0:
            await asyncio.sleep(delay)
    renderer.close()
    drain(sink)


if __name__ == "__main__":
    main()
