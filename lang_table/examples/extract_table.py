# ==================================================
# examples/extract_table.py
# ==================================================
"""Dump a lang table as ``key<TAB>text`` lines."""
import argparse, logging, sys
from lang_table import LangTableError, TableFile

def main(argv=None) -> int:
    p = argparse.ArgumentParser()
    p.add_argument("table", help="path to the compressed lang table")
    p.add_argument("output", help="text file to write")
    p.add_argument("--lenient", action="store_true",
                   help="replace invalid UTF-8 instead of failing")
    p.add_argument("-v", "--verbose", action="store_true")
    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    log = logging.getLogger("extract_table")

    try:
        table = TableFile.load(args.table, errors="replace" if args.lenient else "strict")
    except (LangTableError, OSError) as e:
        log.error("could not load %s: %s", args.table, e)
        return 1

    with open(args.output, "w", encoding="utf-8", newline="\n") as out:
        for key, text in table.entries.items():
            out.write(f"{key}\t{text}\n")
    log.info("wrote %d entries to %s", len(table.entries), args.output)
    return 0

if __name__ == "__main__":
    sys.exit(main())
