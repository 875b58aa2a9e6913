"""CLI script to build a test from a contents file and print it as JSON.
Usage: python scripts/build_test.py CONTENTS --id T-000001 --name Midterm --course Math \
           --start 2030-01-10T09:00 --end 2030-01-10T11:00 --grade 12
"""
import sys
import argparse
import pathlib
from datetime import datetime
from typing import Optional
# Ensure `backend/` is on sys.path so `edurecords` imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from edurecords import services
from edurecords.errors import ValidationError
from edurecords.serialization import to_indented_json
from edurecords.utils.contents_loader import parse_file_to_contents


def main(argv: Optional[list] = None) -> int:
    """Parse the contents file, validate the test and print it.

    Returns a process exit code: 0 when the test is valid, 1 when the
    contents file or a test field is rejected.
    """
    parser = argparse.ArgumentParser(description='Validate a test and print it as indented JSON')
    parser.add_argument('contents', type=pathlib.Path, help='JSON, CSV or TXT file with the questions')
    parser.add_argument('--id', dest='test_id', required=True, help='Test id, e.g. T-000001')
    parser.add_argument('--name', dest='test_name', required=True)
    parser.add_argument('--course', required=True, help='Geo, Phi, Info or Math')
    parser.add_argument('--start', dest='start_time', required=True, type=datetime.fromisoformat)
    parser.add_argument('--end', dest='end_time', required=True, type=datetime.fromisoformat)
    parser.add_argument('--grade', required=True, help='Class label the test is administered to')
    args = parser.parse_args(argv)

    try:
        contents = parse_file_to_contents(args.contents.read_bytes(), args.contents.name)
    except ValidationError as e:
        print(f'Error reading {args.contents}: {e}')
        return 1
    result = services.build_test(
        test_id=args.test_id,
        test_name=args.test_name,
        course=args.course,
        start_time=args.start_time,
        end_time=args.end_time,
        grade=args.grade,
        contents=contents,
    )
    if not result.ok:
        print(f'Invalid {result.error.field}: {result.error}')
        return 1
    print(to_indented_json(result.value))
    return 0


if __name__ == '__main__':
    sys.exit(main())
