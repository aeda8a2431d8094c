from typing import Optional


def normalize_car_plate(plate: Optional[str]) -> str:
    """
    Нормализация госномера: верхний регистр, остаются только A-Z и 0-9.
    Кириллица, пробелы и знаки препинания отбрасываются.
    "a 123 bc 77" -> "A123BC77"
    """
    if not plate:
        return ""
    return "".join(ch for ch in plate.strip().upper() if ("A" <= ch <= "Z") or ("0" <= ch <= "9"))
