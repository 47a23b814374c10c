"""Procurement categories assigned to extracted receipts."""

from enum import StrEnum


class ReceiptCategory(StrEnum):
    """Receipt spending categories, in keyword-matching priority order."""

    LOGISTICS = "Logistics"
    PROGRAM = "Program"
    OPERATIONS = "Operations"
    CONSUMABLES = "Consumables"
    TRANSPORTATION = "Transportation"
    OTHER = "Other"
