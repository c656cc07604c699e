"""Tests for the drug indications API using TestClient with a mocked DB and in-memory Redis."""

from __future__ import annotations

import json
import uuid
from unittest.mock import AsyncMock, patch

import asyncpg
from fastapi.testclient import TestClient

BASE = "/api/v1/drug-indications"
QUERIES = "app.services.indication_service.queries"


class TestListIndications:
    def test_list_empty(self, client: TestClient):
        with patch(f"{QUERIES}.list_indications", new_callable=AsyncMock) as mock_list:
            mock_list.return_value = ([], 0)
            resp = client.get(f"{BASE}/")

        assert resp.status_code == 200
        data = resp.json()
        assert data["data"] == []
        assert data["pagination"] == {"page": 1, "limit": 10, "total": 0, "pages": 0}

    def test_list_passes_filters(self, client: TestClient):
        with patch(f"{QUERIES}.list_indications", new_callable=AsyncMock) as mock_list:
            mock_list.return_value = ([], 0)
            resp = client.get(
                f"{BASE}/", params={"drug": "Dupixent", "mappingStatus": "mapped", "icd10Code": "L20.9"}
            )

        assert resp.status_code == 200
        kwargs = mock_list.call_args.kwargs
        assert kwargs["drug"] == "Dupixent"
        assert kwargs["mapping_status"] == "mapped"
        assert kwargs["icd10_code"] == "L20.9"

    def test_list_served_from_cache_on_second_call(self, client: TestClient, sample_row):
        with patch(f"{QUERIES}.list_indications", new_callable=AsyncMock) as mock_list:
            mock_list.return_value = ([sample_row], 1)
            first = client.get(f"{BASE}/", params={"page": 1, "drug": "Dupixent"})
            second = client.get(f"{BASE}/", params={"drug": "Dupixent", "page": 1})

        assert first.json() == second.json()
        mock_list.assert_called_once()

    def test_list_rejects_bad_limit(self, client: TestClient):
        resp = client.get(f"{BASE}/", params={"limit": 500})
        assert resp.status_code == 422

    def test_list_rejects_bad_icd10(self, client: TestClient):
        resp = client.get(f"{BASE}/", params={"icd10Code": "l20"})
        assert resp.status_code == 422

    def test_list_rejects_pipe_in_free_text_filters(self, client: TestClient):
        with patch(f"{QUERIES}.list_indications", new_callable=AsyncMock) as mock_list:
            mock_list.return_value = ([], 0)
            drug_resp = client.get(f"{BASE}/", params={"drug": "Dupixent|indication:Atopic"})
            indication_resp = client.get(f"{BASE}/", params={"indication": "Atopic|page:2"})

        assert drug_resp.status_code == 422
        assert indication_resp.status_code == 422
        mock_list.assert_not_called()

    def test_crafted_filter_cannot_shadow_real_lookup(self, client: TestClient, sample_row):
        with patch(f"{QUERIES}.list_indications", new_callable=AsyncMock) as mock_list:
            mock_list.return_value = ([sample_row], 1)
            client.get(f"{BASE}/", params={"drug": "Dupixent|indication:Atopic"})
            resp = client.get(f"{BASE}/", params={"drug": "Dupixent", "indication": "Atopic"})

        assert resp.status_code == 200
        assert resp.json()["pagination"]["total"] == 1
        mock_list.assert_called_once()

    def test_malformed_cached_page_falls_back_to_store(self, client: TestClient, fake_redis, sample_row):
        fake_redis.store["drug_indication:list:limit:10|page:1"] = json.dumps({"data": [{}], "pagination": {}})

        with patch(f"{QUERIES}.list_indications", new_callable=AsyncMock) as mock_list:
            mock_list.return_value = ([sample_row], 1)
            resp = client.get(f"{BASE}/")

        assert resp.status_code == 200
        assert resp.json()["data"][0]["drug"] == "Dupixent"
        mock_list.assert_called_once()


class TestGetIndication:
    def test_get_not_found(self, client: TestClient):
        with patch(f"{QUERIES}.get_indication_by_id", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = None
            resp = client.get(f"{BASE}/{uuid.uuid4()}")

        assert resp.status_code == 404

    def test_get_invalid_id(self, client: TestClient):
        resp = client.get(f"{BASE}/not-a-uuid")
        assert resp.status_code == 422

    def test_get_from_cache(self, client: TestClient, fake_redis, sample_indication_data):
        indication_id = sample_indication_data["id"]
        fake_redis.store[f"drug_indication:id:{indication_id}"] = json.dumps(sample_indication_data)

        with patch(f"{QUERIES}.get_indication_by_id", new_callable=AsyncMock) as mock_get:
            resp = client.get(f"{BASE}/{indication_id}")

        assert resp.status_code == 200
        assert resp.json()["id"] == indication_id
        assert resp.json()["icd10Codes"] == ["L20.9"]
        mock_get.assert_not_called()

    def test_malformed_cached_record_falls_back_to_store(self, client: TestClient, fake_redis, sample_row):
        indication_id = str(sample_row["id"])
        fake_redis.store[f"drug_indication:id:{indication_id}"] = "{}"

        with patch(f"{QUERIES}.get_indication_by_id", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = sample_row
            resp = client.get(f"{BASE}/{indication_id}")

        assert resp.status_code == 200
        assert resp.json()["drug"] == "Dupixent"
        mock_get.assert_called_once()
        assert json.loads(fake_redis.store[f"drug_indication:id:{indication_id}"])["drug"] == "Dupixent"

    def test_wrong_type_cached_lookup_falls_back_to_store(self, client: TestClient, fake_redis, sample_row):
        fake_redis.store["drug_indication:drug:Dupixent"] = json.dumps({"drug": "Dupixent"})

        with patch(f"{QUERIES}.find_by_drug", new_callable=AsyncMock) as mock_find:
            mock_find.return_value = [sample_row]
            resp = client.get(f"{BASE}/drugs/Dupixent")

        assert resp.status_code == 200
        assert resp.json()[0]["drug"] == "Dupixent"
        mock_find.assert_called_once()

    def test_get_populates_cache(self, client: TestClient, fake_redis, sample_row):
        indication_id = str(sample_row["id"])
        with patch(f"{QUERIES}.get_indication_by_id", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = sample_row
            resp = client.get(f"{BASE}/{indication_id}")

        assert resp.status_code == 200
        assert f"drug_indication:id:{indication_id}" in fake_redis.store


class TestLookups:
    def test_by_drug(self, client: TestClient, sample_row):
        with patch(f"{QUERIES}.find_by_drug", new_callable=AsyncMock) as mock_find:
            mock_find.return_value = [sample_row]
            resp = client.get(f"{BASE}/drugs/Dupixent")
        assert resp.status_code == 200
        assert resp.json()[0]["drug"] == "Dupixent"

    def test_by_icd10(self, client: TestClient, sample_row):
        with patch(f"{QUERIES}.find_by_icd10_code", new_callable=AsyncMock) as mock_find:
            mock_find.return_value = [sample_row]
            resp = client.get(f"{BASE}/icd10/L20.9")
        assert resp.status_code == 200
        mock_find.assert_called_once()

    def test_by_icd10_invalid_code(self, client: TestClient):
        resp = client.get(f"{BASE}/icd10/bad")
        assert resp.status_code == 422

    def test_by_mapping_status(self, client: TestClient):
        with patch(f"{QUERIES}.find_by_mapping_status", new_callable=AsyncMock) as mock_find:
            mock_find.return_value = []
            resp = client.get(f"{BASE}/mapping-status/review")
        assert resp.status_code == 200
        assert mock_find.call_args.args[1] == "review"

    def test_search_requires_query(self, client: TestClient):
        assert client.get(f"{BASE}/search").status_code == 422
        assert client.get(f"{BASE}/search", params={"q": "a"}).status_code == 422

    def test_search(self, client: TestClient, sample_row):
        with patch(f"{QUERIES}.search_indications", new_callable=AsyncMock) as mock_search:
            mock_search.return_value = [sample_row]
            resp = client.get(f"{BASE}/search", params={"q": "eczema"})
        assert resp.status_code == 200
        assert resp.json()[0]["synonyms"] == ["Eczema"]

    def test_stats(self, client: TestClient):
        with patch(f"{QUERIES}.get_stats", new_callable=AsyncMock) as mock_stats:
            mock_stats.return_value = {
                "total_indications": 7,
                "unique_drugs": 1,
                "unique_icd10_codes": 7,
                "mapping_status": {"mapped": 7},
            }
            resp = client.get(f"{BASE}/stats")
        assert resp.status_code == 200
        assert resp.json() == {
            "totalIndications": 7,
            "uniqueDrugs": 1,
            "uniqueICD10Codes": 7,
            "mappingStatus": {"mapped": 7},
        }


class TestCreateIndication:
    def test_create(self, client: TestClient, fake_redis, create_payload, sample_row):
        fake_redis.store["drug_indication:stats"] = json.dumps({"totalIndications": 0})

        with patch(f"{QUERIES}.insert_indication", new_callable=AsyncMock) as mock_insert:
            mock_insert.return_value = sample_row
            resp = client.post(f"{BASE}/", json=create_payload)

        assert resp.status_code == 201
        assert resp.json()["drug"] == "Dupixent"
        assert "drug_indication:stats" not in fake_redis.store

    def test_create_duplicate(self, client: TestClient, create_payload):
        with patch(f"{QUERIES}.insert_indication", new_callable=AsyncMock) as mock_insert:
            mock_insert.side_effect = asyncpg.UniqueViolationError("duplicate key value")
            resp = client.post(f"{BASE}/", json=create_payload)
        assert resp.status_code == 409

    def test_create_validation_error(self, client: TestClient, create_payload):
        create_payload["icd10Codes"] = ["bad-code"]
        resp = client.post(f"{BASE}/", json=create_payload)
        assert resp.status_code == 422


class TestUpdateIndication:
    def test_update(self, client: TestClient, sample_row):
        with (
            patch(f"{QUERIES}.get_indication_by_id", new_callable=AsyncMock) as mock_get,
            patch(f"{QUERIES}.update_indication", new_callable=AsyncMock) as mock_update,
        ):
            mock_get.return_value = sample_row
            mock_update.return_value = {**sample_row, "limitations": "Adults only."}
            resp = client.put(f"{BASE}/{sample_row['id']}", json={"limitations": "Adults only."})

        assert resp.status_code == 200
        assert resp.json()["limitations"] == "Adults only."

    def test_update_not_found(self, client: TestClient):
        with patch(f"{QUERIES}.get_indication_by_id", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = None
            resp = client.put(f"{BASE}/{uuid.uuid4()}", json={"limitations": "x"})
        assert resp.status_code == 404


class TestDeleteIndication:
    def test_delete_not_found(self, client: TestClient):
        with patch(f"{QUERIES}.get_indication_by_id", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = None
            resp = client.delete(f"{BASE}/{uuid.uuid4()}")
        assert resp.status_code == 404

    def test_delete_success(self, client: TestClient, fake_redis, sample_row):
        indication_id = str(sample_row["id"])
        fake_redis.store[f"drug_indication:id:{indication_id}"] = "{}"

        with (
            patch(f"{QUERIES}.get_indication_by_id", new_callable=AsyncMock) as mock_get,
            patch(f"{QUERIES}.delete_indication", new_callable=AsyncMock) as mock_delete,
        ):
            mock_get.return_value = sample_row
            mock_delete.return_value = True
            resp = client.delete(f"{BASE}/{indication_id}")

        assert resp.status_code == 204
        assert f"drug_indication:id:{indication_id}" not in fake_redis.store
