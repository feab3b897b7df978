# cli/main.py
from __future__ import annotations
import argparse
from .cmd_evaluate import register_evaluate
from .cmd_batch import register_batch



def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Predict QoS of service-composition configurations with a surrogate model")
    sub = p.add_subparsers(dest="command")
    register_evaluate(sub)
    register_batch(sub)
    return p

def main(argv=None) -> None:
    import sys
    argv = list(sys.argv[1:] if argv is None else argv)
    if argv and argv[0] not in {"evaluate", "batch", "-h", "--help"}:
        argv.insert(0, "evaluate")
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "_handler"):
        parser.print_help(); return
    args._handler(args)

if __name__ == "__main__":
    main()
