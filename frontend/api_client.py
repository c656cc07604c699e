"""Thin requests wrapper for the Drug Indication Service API."""

from __future__ import annotations

import os

import requests

BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")
INDICATIONS = "/api/v1/drug-indications"


def _url(path: str) -> str:
    return f"{BASE_URL}{path}"


def list_indications(
    page: int = 1,
    limit: int = 10,
    drug: str | None = None,
    indication: str | None = None,
    mapping_status: str | None = None,
    icd10_code: str | None = None,
) -> dict:
    params: dict = {"page": page, "limit": limit}
    if drug:
        params["drug"] = drug
    if indication:
        params["indication"] = indication
    if mapping_status:
        params["mappingStatus"] = mapping_status
    if icd10_code:
        params["icd10Code"] = icd10_code
    resp = requests.get(_url(f"{INDICATIONS}/"), params=params, timeout=30)
    resp.raise_for_status()
    return resp.json()


def get_indication(indication_id: str) -> dict:
    resp = requests.get(_url(f"{INDICATIONS}/{indication_id}"), timeout=30)
    resp.raise_for_status()
    return resp.json()


def get_by_drug(drug: str) -> list[dict]:
    resp = requests.get(_url(f"{INDICATIONS}/drugs/{drug}"), timeout=30)
    resp.raise_for_status()
    return resp.json()


def get_by_icd10(code: str) -> list[dict]:
    resp = requests.get(_url(f"{INDICATIONS}/icd10/{code}"), timeout=30)
    resp.raise_for_status()
    return resp.json()


def get_by_mapping_status(status: str) -> list[dict]:
    resp = requests.get(_url(f"{INDICATIONS}/mapping-status/{status}"), timeout=30)
    resp.raise_for_status()
    return resp.json()


def search(query: str) -> list[dict]:
    resp = requests.get(_url(f"{INDICATIONS}/search"), params={"q": query}, timeout=30)
    resp.raise_for_status()
    return resp.json()


def get_stats() -> dict:
    resp = requests.get(_url(f"{INDICATIONS}/stats"), timeout=30)
    resp.raise_for_status()
    return resp.json()


def create_indication(payload: dict) -> dict:
    resp = requests.post(_url(f"{INDICATIONS}/"), json=payload, timeout=30)
    resp.raise_for_status()
    return resp.json()


def update_indication(indication_id: str, payload: dict) -> dict:
    resp = requests.put(_url(f"{INDICATIONS}/{indication_id}"), json=payload, timeout=30)
    resp.raise_for_status()
    return resp.json()


def delete_indication(indication_id: str) -> None:
    resp = requests.delete(_url(f"{INDICATIONS}/{indication_id}"), timeout=30)
    resp.raise_for_status()


def health() -> dict:
    resp = requests.get(_url("/health"), timeout=10)
    resp.raise_for_status()
    return resp.json()
