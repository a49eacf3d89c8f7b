"""
Run the generator/solver validation suite and print a markdown table.

Usage:
    python scripts/validate_generator.py [--output validation.md]
"""

import argparse
import sys

from replica_kinetics.validation import print_validation_table, run_validation


def main():
    parser = argparse.ArgumentParser(description="Validate generator construction")
    parser.add_argument(
        '--output', type=str, default=None,
        help='Write the markdown table to this path')
    parser.add_argument(
        '--quiet', action='store_true',
        help='Only print the summary table')
    args = parser.parse_args()

    report = run_validation(verbose=not args.quiet)
    table = print_validation_table(report)
    print()
    print(table)

    if args.output:
        with open(args.output, 'w') as f:
            f.write(table + "\n")
        print(f"\nSaved {args.output}")

    sys.exit(0 if report.n_failed == 0 else 1)


if __name__ == '__main__':
    main()
