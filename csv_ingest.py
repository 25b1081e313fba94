"""
CSV bulk import of expenses

Pipeline: stage upload -> stream rows -> validate each row -> batch -> one
insert -> remove the staged file. Rows missing a required value are dropped
without complaint; only whole-upload problems are reported.
"""
import csv
import logging
import os
import uuid
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterator, NamedTuple, Optional

from sqlalchemy.exc import SQLAlchemyError
from werkzeug.utils import secure_filename

from errors import NoFileError, NoValidRowsError, ProcessingError, SaveError, UploadNotFoundError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("amount", "description", "category", "paymentMethod", "date")
DATE_FORMATS = ["%Y-%m-%d", "%d-%m-%Y", "%Y/%m/%d", "%d/%m/%Y"]
MAX_AMOUNT = Decimal(10) ** 10


class IngestionResult(NamedTuple):
    rows_read: int
    inserted: int

    @property
    def skipped(self):
        return self.rows_read - self.inserted


@contextmanager
def staged_upload(upload, folder):
    """Save an uploaded file under ``folder`` and always delete it afterwards."""
    if upload is None or not upload.filename:
        raise NoFileError()
    os.makedirs(folder, exist_ok=True)
    name = secure_filename(upload.filename) or "upload.csv"
    path = os.path.join(folder, f"{uuid.uuid4().hex}-{name}")
    try:
        upload.save(path)
        yield path
    finally:
        if os.path.exists(path):
            os.remove(path)
            logger.debug("Removed staged upload %s", path)


def parse_date(value) -> Optional[date]:
    """Try the accepted date formats, then ISO date-times"""
    value = str(value).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        return None


def parse_amount(value) -> Optional[Decimal]:
    """Positive amount that fits the NUMERIC(12, 2) column, or None"""
    try:
        amount = Decimal(str(value).strip())
        if not amount.is_finite() or amount <= 0 or amount >= MAX_AMOUNT:
            return None
        amount = amount.quantize(Decimal("0.01"))
    except InvalidOperation:
        return None
    # Rounding can land on 0.00 or on the ten-integer-digit limit
    return amount if 0 < amount < MAX_AMOUNT else None


def validate_row(row: Dict) -> Optional[Dict]:
    """Candidate record for a raw CSV row, or None if the row is unusable."""
    values = {}
    for column in REQUIRED_COLUMNS:
        raw = row.get(column)
        if raw is None or not str(raw).strip():
            return None
        values[column] = str(raw).strip()

    tx_date = parse_date(values["date"])
    amount = parse_amount(values["amount"])
    if tx_date is None or amount is None:
        return None

    return {
        "amount": amount,
        "description": values["description"],
        "category": values["category"],
        "payment_method": values["paymentMethod"],
        "date": tx_date,
    }


def stream_rows(path) -> Iterator[Dict]:
    """Yield rows one at a time, keyed by the trimmed header names."""
    with open(path, newline="", encoding="utf-8-sig") as fh:
        reader = csv.DictReader(fh)
        if reader.fieldnames:
            reader.fieldnames = [(name or "").strip() for name in reader.fieldnames]
        for row in reader:
            yield row


def ingest_csv(store, path, owner_id) -> IngestionResult:
    """Run a staged CSV file through validation and insert the good rows."""
    if not os.path.exists(path):
        raise UploadNotFoundError()

    candidates = []
    rows_read = 0
    try:
        for row in stream_rows(path):
            rows_read += 1
            record = validate_row(row)
            if record is not None:
                candidates.append(record)
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        logger.error("Error reading %s: %s", path, exc)
        raise ProcessingError() from exc

    if not candidates:
        logger.info("CSV upload for user %s had no valid rows (%d read)", owner_id, rows_read)
        raise NoValidRowsError()

    try:
        inserted = store.insert_many(owner_id, candidates)
    except SQLAlchemyError as exc:
        logger.exception("Batch insert of %d expenses failed", len(candidates))
        raise SaveError() from exc

    result = IngestionResult(rows_read=rows_read, inserted=inserted)
    logger.info(
        "CSV upload for user %s: %d rows read, %d inserted, %d dropped",
        owner_id, result.rows_read, result.inserted, result.skipped,
    )
    return result


def import_upload(store, upload, folder, owner_id) -> IngestionResult:
    """Stage ``upload``, ingest it, and clean up whatever happens."""
    with staged_upload(upload, folder) as path:
        return ingest_csv(store, path, owner_id)
