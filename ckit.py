"""ChemistryKit command line: ``ckit new|generate|tags|brew``."""

import os
import sys
import logging
import argparse
from pathlib import Path
from typing import List, Optional, Tuple

from config_utils import load_config, override_configs
from constants import DEFAULT_CONFIG_FILE, DEFAULT_TAGS, DEBUG_ENV
from exceptions import ChemistryKitError, BeakerNotFoundError
from formula import load_formulas
from generators import new_project, generate_formula, generate_beaker
from orchestrator import BeakerOrchestrator
from runner import discover_beakers, check_beakers, run_beakers, list_tags
from tag_filters import parse_tags


def param_pair(pair: str) -> Tuple[str, str]:
    """One KEY:VALUE pair from --params"""
    key, sep, value = pair.partition(':')
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected KEY:VALUE, got '{pair}'")
    return key, value


class ChemistryKitCLI:
    """Dispatches ckit commands.

    Attributes:
        root (Path): Project directory commands run against
        parser (ArgumentParser): The command-line parser
    """

    def __init__(self, root: Optional[Path] = None):
        self.root = Path(root or os.getcwd())
        self.parser = self.build_parser()

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(prog="ckit", description="ChemistryKit test harness")
        commands = parser.add_subparsers(dest="command")

        new = commands.add_parser("new", help="Creates a new ChemistryKit project")
        new.add_argument("name")

        generate = commands.add_parser("generate", help="generate <formula> or <beaker> [NAME]")
        kinds = generate.add_subparsers(dest="kind")
        kinds.required = True
        kinds.add_parser("formula", help="generates a page object").add_argument("name")
        kinds.add_parser("beaker", help="generates a beaker").add_argument("name")

        commands.add_parser("tags", help="Lists all tags in use in the test harness.")

        brew = commands.add_parser("brew", help="Run ChemistryKit")
        brew.add_argument("--params", nargs="+", type=param_pair, metavar="KEY:VALUE",
                          help="Exported as environment variables before the run.")
        brew.add_argument("--tag", nargs="+", help="Tag filters, e.g. depth:deep ~speed:slow")
        brew.add_argument("-c", "--config", default=DEFAULT_CONFIG_FILE,
                          help="Supply alternative config file.")
        brew.add_argument("-b", "--beakers", nargs="+", help="Beakers to run.")
        # set on worker processes so they never fan out again
        brew.add_argument("--parallel", action="store_true", help=argparse.SUPPRESS)
        brew.add_argument("-r", "--results-file", dest="results_file",
                          help="Specify the name of your results file.")
        brew.add_argument("-a", "--all", dest="all", action="store_true", help="Run every beaker.")
        brew.add_argument("--seed", type=int, help="Seed for the random example order.")

        return parser

    def run(self, argv: Optional[List[str]] = None) -> int:
        args = self.parser.parse_args(argv)

        if args.command is None:
            self.parser.print_help()
            return 0

        try:
            if args.command == "new":
                new_project(args.name, self.root)
            elif args.command == "generate":
                if args.kind == "formula":
                    generate_formula(args.name, self.root)
                else:
                    generate_beaker(args.name, self.root)
            elif args.command == "tags":
                list_tags(self.root)
            elif args.command == "brew":
                return self.brew(args)
        except ChemistryKitError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        return 0

    def brew(self, args: argparse.Namespace) -> int:
        """Load config, pick beakers and tags, then run in process or fan out"""
        config = load_config(str(self.root / args.config))

        # params become environment variables for formulas and workers
        for key, value in args.params or []:
            os.environ[key] = value

        config = override_configs(vars(args), config)

        load_formulas(self.root)

        if args.beakers:
            beakers = check_beakers(args.beakers)
            filters = parse_tags(args.tag)
        else:
            beakers = discover_beakers(self.root)
            if not beakers:
                raise BeakerNotFoundError(str(self.root / "beakers"))
            filters = parse_tags(args.tag if args.tag else DEFAULT_TAGS)

        if config.concurrency > 1 and not args.parallel:
            orchestrator = BeakerOrchestrator(
                config,
                config_path=args.config,
                filters=filters,
                run_all=args.all,
                seed=args.seed,
                root=self.root,
            )
            return orchestrator.brew(beakers)

        return run_beakers(
            beakers,
            config,
            filters=filters,
            run_all=args.all,
            parallel=args.parallel,
            seed=args.seed,
            root=self.root,
        )


def configure_logging():
    debug = os.environ.get(DEBUG_ENV, 'false').lower() == 'true'
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the ckit CLI"""
    configure_logging()
    return ChemistryKitCLI().run(argv)


if __name__ == "__main__":
    sys.exit(main())
