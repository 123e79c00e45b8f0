"""API tests for claim query submission and polling."""

POLICY_TEXT = "\n\n".join(
    [
        "Knee surgery is covered once the policy has been active for 3 months or more.",
        "Treatment at empanelled hospitals in Pune and Mumbai is settled cashless.",
        "Cosmetic procedures and experimental treatments are excluded from this policy.",
    ]
)

SCENARIO_A = "46-year-old male, knee surgery in Pune, 3-month-old insurance policy"
SCENARIO_C = "70-year-old male needs knee surgery in Mumbai, 12-month policy"


def _submit(test_client, headers, text):
    response = test_client.post("/api/v1/queries", json={"text": text}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]["query"]


class TestSubmitQuery:
    def test_returns_processing_record(self, test_client, auth_headers):
        query = _submit(test_client, auth_headers, "  knee surgery in Pune  ")

        assert query["status"] == "processing"
        assert query["text"] == "knee surgery in Pune"
        assert set(query) == {"id", "text", "timestamp", "status"}

    def test_blank_text_rejected(self, test_client, auth_headers):
        response = test_client.post("/api/v1/queries", json={"text": "   "}, headers=auth_headers)

        assert response.status_code == 400
        assert test_client.get("/api/v1/queries", headers=auth_headers).json()["data"][
            "queries"
        ] == []

    def test_missing_text_rejected(self, test_client, auth_headers):
        response = test_client.post("/api/v1/queries", json={}, headers=auth_headers)

        assert response.status_code == 400

    def test_requires_auth(self, test_client):
        response = test_client.post("/api/v1/queries", json={"text": SCENARIO_A})

        assert response.status_code == 401


class TestScenarios:
    def test_scenario_a_approved(self, test_client, auth_headers, upload_document, wait_for_query):
        upload_document(POLICY_TEXT)
        submitted = _submit(test_client, auth_headers, SCENARIO_A)

        query = wait_for_query(submitted["id"])

        assert query["status"] == "completed"
        assert query["decision"] == "approved"
        assert query["amount"] == 500000
        assert query["currency"] == "INR"
        assert query["confidence"] == 0.92
        assert "90-day waiting period" not in query["justification"]
        assert "within network coverage area" in query["justification"]
        assert query["processingTime"] >= 0

        clauses = query["clauses"]
        assert len(clauses) == 2
        assert clauses[0]["text"].startswith("Knee surgery is covered")
        assert clauses[0]["documentName"] == "policy.txt"
        assert clauses[0]["relevanceScore"] == 0.6
        assert clauses[0]["section"] == "Section 1"
        assert clauses[0]["page"] == 1

    def test_scenario_b_no_documents(self, test_client, auth_headers, wait_for_query):
        submitted = _submit(test_client, auth_headers, SCENARIO_A)

        query = wait_for_query(submitted["id"])

        assert query["status"] == "completed"
        assert query["decision"] == "pending"
        assert query["confidence"] == 0.5
        assert query["amount"] is None
        assert query["currency"] is None
        assert query["clauses"] == []

    def test_scenario_c_requires_review(
        self, test_client, auth_headers, upload_document, wait_for_query
    ):
        upload_document(POLICY_TEXT)
        submitted = _submit(test_client, auth_headers, SCENARIO_C)

        query = wait_for_query(submitted["id"])

        assert query["decision"] == "requires_review"
        assert query["confidence"] == 0.72


class TestReadQueries:
    def test_list_newest_first(self, test_client, auth_headers, wait_for_query):
        first = _submit(test_client, auth_headers, "dental treatment")
        wait_for_query(first["id"])
        second = _submit(test_client, auth_headers, "eye surgery")
        wait_for_query(second["id"])

        response = test_client.get("/api/v1/queries", headers=auth_headers)

        ids = [query["id"] for query in response.json()["data"]["queries"]]
        assert ids == [second["id"], first["id"]]

    def test_queries_are_scoped_to_owner(self, test_client, auth_headers, register):
        submitted = _submit(test_client, auth_headers, SCENARIO_A)
        other_headers = register(test_client, email="eve@example.com", name="Eve")

        response = test_client.get(f"/api/v1/queries/{submitted['id']}", headers=other_headers)

        assert response.status_code == 404

    def test_unknown_query(self, test_client, auth_headers):
        response = test_client.get(
            "/api/v1/queries/00000000-0000-0000-0000-000000000000", headers=auth_headers
        )

        assert response.status_code == 404

    def test_deleted_document_drops_supporting_clauses(
        self, test_client, auth_headers, upload_document, wait_for_query
    ):
        document = upload_document(POLICY_TEXT)
        submitted = _submit(test_client, auth_headers, SCENARIO_A)
        assert wait_for_query(submitted["id"])["clauses"]

        test_client.delete(f"/api/v1/documents/{document['id']}", headers=auth_headers)

        query = test_client.get(f"/api/v1/queries/{submitted['id']}", headers=auth_headers).json()
        assert query["data"]["query"]["decision"] == "approved"
        assert query["data"]["query"]["clauses"] == []
