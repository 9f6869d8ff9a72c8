import pandas as pd
from typing import List, Dict, Any
from pathlib import Path


class CardParser:
    """
    Parse flashcard tables (CSV or Excel) into card dicts.
    Expected columns: Front, Back and optionally Topic.
    Column names are matched case-insensitively; "question"/"answer" are accepted too.
    """

    COLUMN_ALIASES = {
        "question": "front",
        "prompt": "front",
        "answer": "back",
        "response": "back",
    }

    @staticmethod
    def parse_csv_table(file_path: str) -> List[Dict[str, Any]]:
        """Parse CSV format card table"""
        return CardParser._rows_to_cards(pd.read_csv(file_path))

    @staticmethod
    def parse_excel_table(file_path: str) -> List[Dict[str, Any]]:
        """Parse Excel format card table"""
        return CardParser._rows_to_cards(pd.read_excel(file_path))

    @staticmethod
    def _rows_to_cards(df: pd.DataFrame) -> List[Dict[str, Any]]:
        # Normalize column names
        df.columns = df.columns.astype(str).str.strip().str.lower()
        df = df.rename(columns=CardParser.COLUMN_ALIASES)

        if "front" not in df.columns or "back" not in df.columns:
            raise ValueError(f"Card table needs 'front' and 'back' columns, found: {list(df.columns)}")

        cards = []
        for _, row in df.iterrows():
            front = CardParser._clean(row.get("front"))
            back = CardParser._clean(row.get("back"))

            # Skip rows with missing essential data
            if not front or not back:
                continue

            cards.append({
                "front": front,
                "back": back,
                "topic": CardParser._clean(row.get("topic")) if "topic" in df.columns else None,
            })

        return cards

    @staticmethod
    def _clean(value: Any):
        if value is None or pd.isna(value):
            return None
        text = str(value).strip()
        if not text or text.lower() == "nan":
            return None
        return text

    @staticmethod
    def auto_parse(file_path: str) -> List[Dict[str, Any]]:
        """
        Automatically detect file type and parse accordingly.
        Supports: CSV, Excel (xlsx, xls)
        """
        file_ext = Path(file_path).suffix.lower()

        if file_ext == ".csv":
            return CardParser.parse_csv_table(file_path)
        elif file_ext in [".xlsx", ".xls"]:
            return CardParser.parse_excel_table(file_path)
        else:
            raise ValueError(f"Unsupported file format: {file_ext}. Use .csv or .xlsx")
