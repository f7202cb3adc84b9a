"""
Shared pytest configuration and fixtures.

This module provides fixtures used across the unit and integration suites:
sample upload content and an empty in-memory patient repository.
"""

import io
import logging
from typing import Any, Callable, Iterator

import pandas as pd
import pytest

from tbhiv_registry.storage.repository import InMemoryPatientRepository


CSV_HEADER = (
    "first_name,last_name,date_of_birth,gender,phone_number,"
    "province,district,facility,tb_status,hiv_status"
)


@pytest.fixture
def sample_csv_bytes() -> bytes:
    """
    Return a three-row CSV upload with valid rows only.

    Returns:
        bytes: UTF-8 encoded CSV content.
    """
    return (
        f"{CSV_HEADER}\n"
        "Thandiwe,Dlamini,1985-03-12,female,0825551234,Gauteng,Johannesburg,Hillbrow CHC,confirmed,positive\n"
        "Sipho,Nkosi,1979-11-02,male,,KwaZulu-Natal,eThekwini,Addington,suspected,negative\n"
        "Lerato,Mokoena,1992-07-28,female,0711234567,Gauteng,Tshwane,Mamelodi Clinic,negative,unknown\n"
    ).encode("utf-8")


@pytest.fixture
def bad_gender_csv_bytes() -> bytes:
    """
    Return a three-row CSV upload whose second row has an invalid gender.

    Returns:
        bytes: UTF-8 encoded CSV content.
    """
    return (
        "first_name,last_name,date_of_birth,gender\n"
        "Amahle,Zulu,1990-01-15,female\n"
        "Bongani,Khumalo,1988-05-20,x\n"
        "Naledi,Sithole,1975-09-30,female\n"
    ).encode("utf-8")


@pytest.fixture
def make_xlsx() -> Callable[[list[dict[str, Any]]], bytes]:
    """
    Return a builder that renders rows as an Excel workbook.

    Returns:
        Callable taking a list of row dicts and returning .xlsx bytes.
    """

    def _build(rows: list[dict[str, Any]], columns: list[str] | None = None) -> bytes:
        buffer = io.BytesIO()
        pd.DataFrame(rows, columns=columns).to_excel(buffer, index=False, engine="openpyxl")
        return buffer.getvalue()

    return _build


@pytest.fixture
def repository() -> InMemoryPatientRepository:
    """
    Return an empty in-memory patient repository.

    Returns:
        InMemoryPatientRepository: Fresh repository for each test.
    """
    return InMemoryPatientRepository()


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
    """
    Put the root logger's handlers and level back after each test.

    configure_logging replaces root handlers, and CLI runs bind console
    handlers to streams that are closed once the run ends.
    """
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
