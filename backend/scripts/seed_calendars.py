#!/usr/bin/env python
# scripts/seed_calendars.py

import argparse
import json
import os
import sys
from datetime import datetime
from pathlib import Path

# This script is intended to be run from the command line.
# It needs access to the main Flask application context.
# We add the project's root directory to the Python path to allow imports.
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from sqlalchemy.exc import SQLAlchemyError

from masjidtimes import create_app
from masjidtimes.errors import CalendarValidationError
from masjidtimes.extensions import db
from masjidtimes.models import Mosque, MonthlyPrayerTimes, RamadanTimetable
from masjidtimes.services.calendar_store import (
    build_monthly_calendar,
    build_ramadan_calendar,
    normalize_mosque_slug,
    validate_year,
)
from masjidtimes.services.mosque_service import load_static_mosques
from masjidtimes.utils.constants import MONTH_NUMBERS


def _read_json(path):
    with path.open('r', encoding='utf-8') as f:
        return json.load(f)


def seed_mosques(mosques_path):
    """Upserts every valid entry of mosques.json into the Mosque table."""
    count = 0
    for record in load_static_mosques(mosques_path):
        mosque = Mosque.query.filter_by(slug=record.slug).first()
        if mosque is None:
            mosque = Mosque(slug=record.slug)
            db.session.add(mosque)
        mosque.external_id = record.id
        mosque.name = record.name
        mosque.address = record.address
        mosque.latitude = record.lat
        mosque.longitude = record.lng
        mosque.website = record.website
        mosque.is_hidden = record.is_hidden
        count += 1
    return count


def seed_monthly(slug, path, year):
    month_name = path.stem.lower()
    document = _read_json(path)
    # Validated with the same schemas the engine uses at request time.
    calendar = build_monthly_calendar(document, slug, month_name, year)

    record = MonthlyPrayerTimes.query.filter_by(mosque_slug=slug, month=month_name, year=year).first()
    if record is None:
        record = MonthlyPrayerTimes(mosque_slug=slug, month=month_name, year=year)
        db.session.add(record)
    record.month_display = calendar.display_label
    record.prayer_times = document['prayer_times']
    record.iqamah_times = document['iqamah_times']
    record.jummah_iqamah = calendar.jummah_time


def seed_ramadan(slug, path):
    document = _read_json(path)
    calendar = build_ramadan_calendar(document, slug)
    if calendar is None:
        print(f"SKIPPED: {path} has no Gregorian start/end.")
        return False

    record = RamadanTimetable.query.filter_by(mosque_slug=slug, gregorian_start=calendar.gregorian_start).first()
    if record is None:
        record = RamadanTimetable(mosque_slug=slug, gregorian_start=calendar.gregorian_start)
        db.session.add(record)
    record.month = calendar.month_label
    record.gregorian_end = calendar.gregorian_end
    record.prayer_times = document['prayer_times']
    record.iqamah_times = document['iqamah_times']
    record.jummah_iqamah = calendar.jummah_time
    return True


def seed_calendars(data_dir, year, mosques_path=None):
    """
    Loads calendar JSON documents into the database.

    The directory uses the static calendar layout: `<data_dir>/<slug>/<month>.json`
    and `<data_dir>/<slug>/ramadan.json`. Month files are not keyed by year,
    so they are stored under `year`. Existing rows are updated in place.
    A document that fails validation is reported and skipped; the rest of
    the directory is still loaded.
    """
    app = create_app(os.getenv('FLASK_CONFIG') or 'default')
    with app.app_context():
        print("--- Starting the Calendar Seed Script ---")
        year = validate_year(year)
        data_dir = Path(data_dir)

        if mosques_path:
            print(f"INFO: Upserted {seed_mosques(mosques_path)} mosques from {mosques_path}.")

        loaded, skipped = 0, 0
        for mosque_dir in sorted(p for p in data_dir.iterdir() if p.is_dir()):
            try:
                slug = normalize_mosque_slug(mosque_dir.name)
            except CalendarValidationError as e:
                print(f"SKIPPED: {mosque_dir} ({e})")
                skipped += 1
                continue

            for path in sorted(mosque_dir.glob('*.json')):
                try:
                    if path.stem.lower() == 'ramadan':
                        if not seed_ramadan(slug, path):
                            skipped += 1
                            continue
                    elif path.stem.lower() in MONTH_NUMBERS:
                        seed_monthly(slug, path, year)
                    else:
                        print(f"SKIPPED: {path} is not a month or Ramadan file.")
                        skipped += 1
                        continue
                except (CalendarValidationError, ValueError) as e:
                    print(f"ERROR: {path} is not a valid calendar document. Details: {e}")
                    skipped += 1
                    continue
                loaded += 1

        try:
            db.session.commit()
        except SQLAlchemyError as e:
            print(f"ERROR: An error occurred while saving calendars. Rolling back. Details: {e}")
            db.session.rollback()
            raise

        print(f"SUCCESS: Loaded {loaded} calendar documents ({skipped} skipped).")
        print("--- Seed script finished. ---")


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description="Load calendar JSON documents into the database.")
    parser.add_argument('data_dir', help="Directory laid out as <slug>/<month>.json and <slug>/ramadan.json")
    parser.add_argument('--year', type=int, default=datetime.utcnow().year, help="Year to store month files under")
    parser.add_argument('--mosques', help="Path to a mosques.json file to upsert as well")
    args = parser.parse_args()
    seed_calendars(args.data_dir, args.year, args.mosques)
