"""Excel workbook persistence for the ledger tables."""
import errno
import os
import zipfile
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

from openpyxl import Workbook, load_workbook
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.styles import Font

from groupledger.utils.exceptions import StoreBusyError, StoreError
from groupledger.utils.logger import get_logger

logger = get_logger()

# errno values raised when another process holds the file
BUSY_ERRNOS = {errno.EBUSY, errno.EAGAIN, errno.EACCES}

Table = Tuple[Sequence[str], List[Sequence[Any]]]


class WorkbookFile:
    """Reads and rewrites a workbook made of named header+rows tables."""
    
    def __init__(self, path: Path):
        self.path = Path(path)
    
    def exists(self) -> bool:
        return self.path.exists()
    
    def read(self) -> Dict[str, List[tuple]]:
        """
        Read every sheet as a list of data rows (header excluded).
        
        Raises:
            StoreError: If the file cannot be opened as a workbook
        """
        try:
            wb = load_workbook(self.path, read_only=True, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
            raise StoreError(f"Cannot read workbook {self.path}: {e}") from e
        
        try:
            tables = {}
            for ws in wb.worksheets:
                tables[ws.title] = [
                    row for row in ws.iter_rows(min_row=2, values_only=True)
                    if any(cell is not None for cell in row)
                ]
            return tables
        finally:
            wb.close()
    
    def write(self, tables: Dict[str, Table]) -> None:
        """
        Replace the workbook with the given tables, in order.
        
        The file is written next to the target and swapped in, so a failed write
        never leaves a half-written workbook behind.
        
        Raises:
            StoreBusyError: If the target is locked by another process
            StoreError: For any other write failure
        """
        wb = Workbook()
        wb.remove(wb.active)
        
        for name, (headers, rows) in tables.items():
            ws = wb.create_sheet(name)
            ws.append(list(headers))
            for cell in ws[1]:
                cell.font = Font(bold=True)
            for row in rows:
                ws.append(list(row))
            for idx, header in enumerate(headers, start=1):
                ws.column_dimensions[get_column_letter(idx)].width = max(12, len(header) + 2)
        
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f".{self.path.name}.tmp")
        
        try:
            wb.save(tmp_path)
            os.replace(tmp_path, self.path)
        except OSError as e:
            self._discard(tmp_path)
            if isinstance(e, PermissionError) or e.errno in BUSY_ERRNOS:
                raise StoreBusyError(f"Workbook is busy: {self.path}") from e
            raise StoreError(f"Failed to write workbook {self.path}: {e}") from e
    
    def quarantine(self) -> Path:
        """Move an unreadable workbook aside so it is not overwritten."""
        target = self.path.with_name(f"{self.path.name}.unreadable")
        os.replace(self.path, target)
        return target
    
    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.debug(f"Could not remove temporary workbook {path}: {e}")
