"""Story Weaver: command-line entry point. Prints JSON to stdout."""

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")


def _dump(payload) -> None:
    json.dump(payload, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")


def main(argv: list[str] | None = None) -> int:
    from story_weaver.config import get_config, make_rng

    parser = argparse.ArgumentParser(description="Story Weaver synthesizer")
    parser.add_argument("--config", type=Path, default=None,
                        help="JSON config file (env STORY_WEAVER_* overrides it)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed for reproducible output")
    parser.add_argument("--presets-dir", type=Path, default=None,
                        help="Directory holding the preset JSON tables")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("character", help="Character from keywords")
    p.add_argument("keywords")

    p = sub.add_parser("describe", help="Character from a prose description")
    p.add_argument("description")

    p = sub.add_parser("scenario", help="Scenario from keywords")
    p.add_argument("keywords")
    p.add_argument("--cast-size", type=int, default=None)
    p.add_argument("--quick", action="store_true",
                   help="Three scenarios at once (franchise-aware)")

    p = sub.add_parser("arc", help="Start a story arc, optionally advancing it")
    p.add_argument("--title", default=None)
    p.add_argument("--prompt", default=None)
    p.add_argument("--theme", default=None)
    p.add_argument("--message", action="append", default=[],
                   help="Chat message to advance with (repeatable)")

    sub.add_parser("demo", help="Print the scripted demo save file")
    sub.add_parser("mcp", help="Run the MCP server on stdio")

    args = parser.parse_args(argv)
    config = get_config(args.config)
    logging.basicConfig(level=config["log_level"], format="%(levelname)s %(name)s: %(message)s")

    seed = args.seed if args.seed is not None else config["seed"]
    rng = make_rng(seed)
    presets_dir = args.presets_dir or config["presets_dir"]

    from story_weaver.lexicon import Lexicon
    lexicon = Lexicon.load(presets_dir) if presets_dir else None

    if args.command == "character":
        from story_weaver.characters import character_from_keywords
        _dump(character_from_keywords(args.keywords, lexicon, rng).model_dump(by_alias=True))

    elif args.command == "describe":
        from story_weaver.characters import character_from_description
        character = character_from_description(args.description, lexicon, rng)
        if character is None:
            print("Description is empty", file=sys.stderr)
            return 1
        _dump(character.model_dump(by_alias=True))

    elif args.command == "scenario":
        from story_weaver import scenarios
        cast_size = args.cast_size or config["cast_size"]
        if args.quick:
            results = scenarios.quick_scenarios(args.keywords, cast_size, lexicon, rng)
            _dump([s.model_dump(by_alias=True) for s in results])
        else:
            _dump(scenarios.synthesize_scenario(args.keywords, cast_size, lexicon, rng).model_dump(by_alias=True))

    elif args.command == "arc":
        from story_weaver import story_arc
        arc = story_arc.initialize(args.title, args.prompt, args.theme, lexicon)
        if args.message:
            arc = story_arc.advance(arc, args.message, config["history_window"], lexicon)
        _dump(arc.model_dump(by_alias=True))

    elif args.command == "demo":
        from story_weaver.demo import create_demo_session
        from story_weaver.save_file import dump_save
        print(dump_save(create_demo_session(rng, lexicon)))

    elif args.command == "mcp":
        from story_weaver import mcp_server
        mcp_server.set_rng(rng)
        mcp_server.set_lexicon(lexicon)
        mcp_server.set_history_window(config["history_window"])
        mcp_server.mcp.run()

    return 0


if __name__ == "__main__":
    sys.exit(main())
