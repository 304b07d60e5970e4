"""Bank statement import: CSV/Excel files to a reviewable transaction table.

Files are read with pandas, every cell as text. Column roles (date,
description, amount or debit/credit, memo, ...) are guessed from the
header row in English or Spanish and can be overridden by the caller.
The result is a pending preview; nothing is written to the budget.
"""

from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass, fields, replace
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pandas as pd

logger = logging.getLogger(__name__)

CSV_DELIMITERS = [',', ';', '\t', '|']
CSV_ENCODINGS = ['utf-8-sig', 'latin-1']
EXCEL_EXTENSIONS = ('.xlsx', '.xls')

STATUS_PENDING = 'pending'

IMPORT_COLUMNS = [
    'date',
    'description',
    'payee',
    'suggested_payee',
    'category',
    'suggested_category',
    'amount',
    'outflow',
    'inflow',
    'memo',
    'original_memo',
    'reference',
    'flag',
    'status',
]

# more specific headers first: "original memo" must not be taken for "memo"
HEADER_PATTERNS: Dict[str, List[str]] = {
    'date': ['transaction date', 'fecha operación', 'fecha op', 'date', 'fecha'],
    'description': ['description', 'descripción', 'concepto', 'detail', 'detalle', 'movimiento'],
    'amount': ['amount', 'monto', 'importe', 'cantidad'],
    'debit': ['debit', 'cargo', 'débito', 'withdrawal', 'retiro', 'egreso', 'outflow'],
    'credit': ['credit', 'abono', 'crédito', 'deposit', 'depósito', 'ingreso', 'inflow'],
    'original_memo': ['original memo', 'memo original', 'referencia banco', 'bank memo'],
    'memo': ['memo', 'nota', 'notas', 'observaciones'],
    'reference': ['reference', 'referencia', 'ref', 'folio', 'número'],
    'suggested_payee': ['suggested payee', 'payee sugerido', 'beneficiario sugerido'],
    'payee': ['payee', 'beneficiario', 'destinatario', 'proveedor'],
    'suggested_category': ['suggested category', 'categoría sugerida', 'categoria sugerida'],
    'category': ['category', 'categoría', 'categoria'],
    'flag': ['flag', 'bandera', 'marca', 'color'],
}

_ISO_DATE = re.compile(r'^(\d{4})-(\d{2})-(\d{2})$')
_DAY_FIRST_DATE = re.compile(r'^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$')
_CURRENCY_NOISE = re.compile(r'[$€£¥\s]')


@dataclass
class ColumnMapping:
    """Zero-based column positions; ``None`` when the file has no such column."""

    date: int = 0
    description: int = 1
    amount: Optional[int] = None
    debit: Optional[int] = None
    credit: Optional[int] = None
    memo: Optional[int] = None
    original_memo: Optional[int] = None
    reference: Optional[int] = None
    payee: Optional[int] = None
    suggested_payee: Optional[int] = None
    category: Optional[int] = None
    suggested_category: Optional[int] = None
    flag: Optional[int] = None

    def with_overrides(self, overrides: Optional[Dict[str, Optional[int]]]) -> 'ColumnMapping':
        known = {item.name for item in fields(self)}
        return replace(self, **{key: value for key, value in (overrides or {}).items() if key in known})


def read_import_file(path_or_buffer) -> pd.DataFrame:
    """Load a CSV or Excel statement with every cell as a string.

    CSV delimiters are tried in turn and the first one that splits the
    header into several columns wins. Uploaded file objects are accepted
    as well as paths.

    Raises:
        ValueError: For an unsupported extension or an unreadable file.
    """
    if hasattr(path_or_buffer, 'read'):
        name = str(getattr(path_or_buffer, 'name', 'upload.csv'))
        payload = path_or_buffer.read()
    else:
        name = str(path_or_buffer)
        payload = None

    ext = Path(name).suffix.lower()
    if ext in EXCEL_EXTENSIONS:
        source = io.BytesIO(payload) if payload is not None else name
        try:
            frame = pd.read_excel(source, dtype=str)
        except (ValueError, OSError) as exc:
            raise ValueError(f"Could not read spreadsheet '{name}': {exc}") from exc
        return _clean(frame)
    if ext not in {'.csv', '.txt', ''}:
        raise ValueError(f"Unsupported file extension '{ext}'.")

    raw = payload if payload is not None else Path(name).read_bytes()
    if isinstance(raw, str):
        raw = raw.encode('utf-8')
    for encoding in CSV_ENCODINGS:
        for delimiter in CSV_DELIMITERS:
            try:
                frame = pd.read_csv(
                    io.BytesIO(raw),
                    encoding=encoding,
                    delimiter=delimiter,
                    dtype=str,
                    keep_default_na=False,
                    index_col=False,
                )
            except (UnicodeDecodeError, pd.errors.ParserError):
                continue
            except pd.errors.EmptyDataError:
                return pd.DataFrame()
            if frame.shape[1] > 1:
                logger.debug("Read %s as %s with delimiter %r", name, encoding, delimiter)
                return _clean(frame)
    raise ValueError(f"Could not split '{name}' into columns with any of {CSV_DELIMITERS}.")


def detect_columns(headers: Sequence[str]) -> ColumnMapping:
    """Guess column roles from header names.

    An exact header match beats a partial one. Each column is used for one
    role at most. Without a recognisable date or description column the
    first and second columns are assumed.
    """
    lowered = [str(header).strip().lower() for header in headers]
    taken: set = set()
    found: Dict[str, Optional[int]] = {}
    for role, patterns in HEADER_PATTERNS.items():
        index = _find_column(lowered, patterns, taken)
        if index is not None:
            taken.add(index)
        found[role] = index

    return ColumnMapping(
        date=found['date'] if found['date'] is not None else 0,
        description=found['description'] if found['description'] is not None else 1,
        amount=found['amount'],
        debit=found['debit'],
        credit=found['credit'],
        memo=found['memo'],
        original_memo=found['original_memo'],
        reference=found['reference'],
        payee=found['payee'],
        suggested_payee=found['suggested_payee'],
        category=found['category'],
        suggested_category=found['suggested_category'],
        flag=found['flag'],
    )


def _find_column(lowered: List[str], patterns: List[str], taken: set) -> Optional[int]:
    for index, header in enumerate(lowered):
        if index not in taken and header in patterns:
            return index
    for pattern in patterns:
        for index, header in enumerate(lowered):
            if index not in taken and pattern in header:
                return index
    return None


def parse_amount(value) -> float:
    """Parse ``$1,234.56``, ``-12.5``, ``1.234,56`` or ``12,5`` style amounts.

    With both separators present the last one is the decimal point. A lone
    comma is a decimal comma unless exactly three digits follow it.
    Unparseable text is 0.
    """
    cleaned = _CURRENCY_NOISE.sub('', str(value or ''))
    if not cleaned:
        return 0.0
    comma, dot = cleaned.rfind(','), cleaned.rfind('.')
    if dot >= 0:
        decimal_comma = comma > dot
    else:
        decimal_comma = comma >= 0 and len(cleaned) - comma - 1 != 3
    if decimal_comma:
        cleaned = cleaned.replace('.', '').replace(',', '.')
    else:
        cleaned = cleaned.replace(',', '')
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def parse_date(value, today: Optional[date] = None) -> str:
    """Normalise a statement date to ``YYYY-MM-DD``.

    Slashed and dashed dates are read day first; when the month part is
    above 12 and the day part is not, they are read month first instead.
    Anything else goes through :func:`pandas.to_datetime`. Dates that
    cannot be parsed become ``today``.
    """
    text = str(value or '').strip()
    match = _ISO_DATE.match(text)
    if match:
        return text

    match = _DAY_FIRST_DATE.match(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
        if month > 12 and day <= 12:
            day, month = month, day
        return f"{year:04d}-{month:02d}-{day:02d}"

    if text:
        parsed = pd.to_datetime(text, errors='coerce')
        if not pd.isna(parsed):
            return parsed.strftime('%Y-%m-%d')

    fallback = today or date.today()
    logger.warning("Unrecognised date %r; using %s", text, fallback.isoformat())
    return fallback.isoformat()


def rows_to_transactions(
    rows: pd.DataFrame,
    mapping: ColumnMapping,
    today: Optional[date] = None,
) -> pd.DataFrame:
    """Turn statement rows into pending import rows with :data:`IMPORT_COLUMNS`.

    A mapped amount column wins; otherwise amount is credit minus debit.
    Completely blank rows are skipped.
    """
    records = []
    for values in rows.itertuples(index=False, name=None):
        cells = ['' if pd.isna(cell) else str(cell).strip() for cell in values]
        if not any(cells):
            continue

        def cell(index: Optional[int]) -> str:
            if index is None or index >= len(cells):
                return ''
            return cells[index]

        if mapping.amount is not None and cell(mapping.amount):
            amount = parse_amount(cell(mapping.amount))
            outflow = abs(amount) if amount < 0 else 0.0
            inflow = amount if amount >= 0 else 0.0
        else:
            outflow = parse_amount(cell(mapping.debit))
            inflow = parse_amount(cell(mapping.credit))
            amount = inflow - outflow

        description = cell(mapping.description)
        payee = cell(mapping.payee)
        suggested_payee = cell(mapping.suggested_payee)
        category = cell(mapping.category)
        suggested_category = cell(mapping.suggested_category)
        records.append({
            'date': parse_date(cell(mapping.date), today),
            'description': description,
            'payee': payee or suggested_payee,
            'suggested_payee': suggested_payee or payee or description,
            'category': category,
            'suggested_category': suggested_category or category,
            'amount': amount,
            'outflow': outflow,
            'inflow': inflow,
            'memo': cell(mapping.memo),
            'original_memo': cell(mapping.original_memo),
            'reference': cell(mapping.reference),
            'flag': cell(mapping.flag) or None,
            'status': STATUS_PENDING,
        })
    return pd.DataFrame(records, columns=IMPORT_COLUMNS)


def _clean(frame: pd.DataFrame) -> pd.DataFrame:
    frame = frame.fillna('')
    frame.columns = [str(column).strip() for column in frame.columns]
    if not isinstance(frame.index, pd.RangeIndex):
        frame = frame.reset_index(drop=True)
    return frame
