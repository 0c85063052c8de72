"""
End-to-end tests through the FastAPI app against an in-memory SQLite database.
Each test opens its own TestClient, so the lifespan creates a fresh schema.
Run from the project root: python -m pytest tests/test_api.py -v
"""
import json
import unittest
from datetime import datetime

from fastapi.testclient import TestClient

from main import app


def _application_body(**overrides):
    body = {
        "personalInfo": {"fullName": "Ada Tenant", "email": "ada@example.com", "phone": "555-0100"},
        "employmentInfo": {"employer": "Acme", "position": "Engineer", "income": "85000", "employmentLength": "2 years"},
        "rentalHistory": {"currentAddress": "1 Main St", "lengthOfStay": "3 years"},
        "references": [{"name": "Bob Ref", "relationship": "Former landlord", "phone": "555-0101"}],
        "documents": [],
        "customAnswers": [],
    }
    body.update(overrides)
    return body


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)
        self.client.__enter__()

    def tearDown(self):
        self.client.__exit__(None, None, None)

    def create_agent(self, **overrides):
        body = {"name": "Jane Smith", "businessName": "Smith Real Estate", "email": "jane@smith.com"}
        body.update(overrides)
        resp = self.client.post("/api/agents", json=body)
        self.assertEqual(resp.status_code, 201, resp.text)
        return resp.json()

    def create_application(self, agent_id, **overrides):
        resp = self.client.post("/api/applications", json={"agentId": agent_id, **_application_body(**overrides)})
        self.assertEqual(resp.status_code, 201, resp.text)
        return resp.json()


class TestAgents(ApiTestCase):
    def test_slug_derived_from_name(self):
        agent = self.create_agent()
        self.assertEqual(agent["urlSlug"], "jane-smith")
        self.assertTrue(agent["applicationLink"].endswith("/apply/jane-smith"))
        self.assertFalse(agent["isPlaceholder"])

        resp = self.client.get("/api/agents/by-slug/jane-smith")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["id"], agent["id"])

    def test_slug_clash_rejected(self):
        self.create_agent()
        resp = self.client.post("/api/agents", json={"name": "Jane Smith"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"]["message"], "Slug already in use")

    def test_unknown_agent_404(self):
        self.assertEqual(self.client.get("/api/agents/agent-missing").status_code, 404)
        self.assertEqual(self.client.get("/api/agents/by-slug/nobody").status_code, 404)

    def test_radio_question_needs_two_options(self):
        agent = self.create_agent()
        url = f"/api/agents/{agent['id']}/questions"
        resp = self.client.post(url, json={"questionText": "Pets?", "type": "radio", "options": ["Yes"]})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("options", resp.json()["detail"]["fields"])

        resp = self.client.post(url, json={"questionText": "Pets?", "type": "radio", "options": ["Yes", "No"]})
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["options"], ["Yes", "No"])
        self.assertTrue(resp.json()["id"].startswith("cq-"))

    def test_question_update_and_delete(self):
        agent = self.create_agent()
        url = f"/api/agents/{agent['id']}/questions"
        question = self.client.post(url, json={"questionText": "Notes?", "type": "text"}).json()

        resp = self.client.patch(f"{url}/{question['id']}", json={"type": "select"})
        self.assertEqual(resp.status_code, 400)

        resp = self.client.patch(f"{url}/{question['id']}", json={"type": "select", "options": ["A", "B"]})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["type"], "select")

        self.assertEqual(self.client.delete(f"{url}/{question['id']}").status_code, 204)
        self.assertEqual(self.client.get(f"/api/agents/{agent['id']}").json()["customQuestions"], [])
        self.assertEqual(self.client.delete(f"{url}/{question['id']}").status_code, 404)

    def test_update_agent_profile(self):
        agent = self.create_agent()
        resp = self.client.patch(f"/api/agents/{agent['id']}", json={"businessName": "Smith & Co", "urlSlug": "smith-co"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["businessName"], "Smith & Co")
        self.assertEqual(resp.json()["urlSlug"], "smith-co")
        self.assertEqual(resp.json()["name"], "Jane Smith")

    def test_supplied_slug_is_normalized(self):
        agent = self.create_agent(urlSlug="Jane  Smith!")
        self.assertEqual(agent["urlSlug"], "jane-smith")
        self.assertTrue(agent["applicationLink"].endswith("/apply/jane-smith"))

        resp = self.client.patch(f"/api/agents/{agent['id']}", json={"urlSlug": "Smith & Co"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["urlSlug"], "smith-co")

    def test_null_name_rejected(self):
        agent = self.create_agent()
        resp = self.client.patch(f"/api/agents/{agent['id']}", json={"name": None})
        self.assertEqual(resp.status_code, 422)
        self.assertEqual(self.client.get(f"/api/agents/{agent['id']}").json()["name"], "Jane Smith")

    def test_dashboard_counts(self):
        agent = self.create_agent()
        first = self.create_application(agent["id"])
        self.create_application(agent["id"])
        self.client.patch(f"/api/applications/{first['id']}/status", json={"status": "approved"})

        resp = self.client.get(f"/api/agents/{agent['id']}/dashboard")
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["totalApplications"], 2)
        self.assertEqual(data["pendingApplications"], 1)
        self.assertEqual(data["approvedApplications"], 1)
        self.assertEqual(data["countsByStatus"]["rejected"], 0)


class TestApplications(ApiTestCase):
    def test_created_application_is_pending(self):
        agent = self.create_agent()
        app_data = self.create_application(agent["id"], status="approved")
        self.assertEqual(app_data["status"], "pending")
        self.assertEqual(app_data["personalInfo"]["fullName"], "Ada Tenant")
        self.assertEqual(app_data["references"][0]["name"], "Bob Ref")
        self.assertIn("landlordView", app_data["links"])

    def test_incomplete_application_rejected(self):
        agent = self.create_agent()
        body = _application_body(personalInfo={"fullName": "  ", "email": "ada@example.com", "phone": "555"})
        resp = self.client.post("/api/applications", json={"agentId": agent["id"], **body})
        self.assertEqual(resp.status_code, 400)
        detail = resp.json()["detail"]
        self.assertEqual(detail["step"], "personal")
        self.assertIn("personalInfo.fullName", detail["fields"])

    def test_unknown_agent_on_create(self):
        resp = self.client.post("/api/applications", json={"agentId": "agent-missing", **_application_body()})
        self.assertEqual(resp.status_code, 404)

    def test_stringified_sections_accepted(self):
        agent = self.create_agent()
        body = _application_body()
        body["personalInfo"] = json.dumps(body["personalInfo"])
        body["references"] = json.dumps(body["references"])
        app_data = self.create_application(agent["id"], **body)
        self.assertEqual(app_data["personalInfo"]["email"], "ada@example.com")
        self.assertEqual(app_data["references"][0]["phone"], "555-0101")

    def test_get_and_delete(self):
        agent = self.create_agent()
        app_data = self.create_application(agent["id"])
        resp = self.client.get(f"/api/applications/{app_data['id']}")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["id"], app_data["id"])

        self.assertEqual(self.client.delete(f"/api/applications/{app_data['id']}").status_code, 204)
        resp = self.client.get(f"/api/applications/{app_data['id']}")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["detail"], "Application not found")

    def test_list_filters(self):
        agent = self.create_agent()
        other = self.create_agent(name="Other Agent")
        ada = self.create_application(agent["id"])
        self.create_application(
            agent["id"],
            personalInfo={"fullName": "Grace Renter", "email": "grace@example.com", "phone": "555-0200"},
        )
        self.create_application(other["id"])
        self.client.patch(f"/api/applications/{ada['id']}/status", json={"status": "forwarded"})

        listed = self.client.get("/api/applications", params={"agentId": agent["id"]}).json()
        self.assertEqual(len(listed), 2)
        # Most recently touched first
        self.assertEqual(listed[0]["id"], ada["id"])

        forwarded = self.client.get("/api/applications", params={"agentId": agent["id"], "status": "forwarded"}).json()
        self.assertEqual([a["id"] for a in forwarded], [ada["id"]])

        everything = self.client.get("/api/applications", params={"agentId": agent["id"], "status": "all"}).json()
        self.assertEqual(len(everything), 2)

        found = self.client.get("/api/applications", params={"search": "GRACE"}).json()
        self.assertEqual([a["personalInfo"]["fullName"] for a in found], ["Grace Renter"])

        self.assertEqual(self.client.get("/api/applications", params={"status": "archived"}).status_code, 400)

    def test_partial_update_leaves_other_sections(self):
        agent = self.create_agent()
        app_data = self.create_application(agent["id"])
        resp = self.client.patch(
            f"/api/applications/{app_data['id']}",
            json={"employmentInfo": {"employer": "Globex", "position": "Lead", "income": "99000"}},
        )
        self.assertEqual(resp.status_code, 200)
        updated = resp.json()
        self.assertEqual(updated["employmentInfo"]["employer"], "Globex")
        self.assertEqual(updated["personalInfo"], app_data["personalInfo"])
        self.assertEqual(updated["status"], "pending")
        self.assertGreater(datetime.fromisoformat(updated["updatedAt"]), datetime.fromisoformat(app_data["updatedAt"]))

    def test_partial_section_update_keeps_unsent_fields(self):
        agent = self.create_agent()
        app_data = self.create_application(agent["id"])
        resp = self.client.patch(f"/api/applications/{app_data['id']}", json={"personalInfo": {"email": "new@example.com"}})
        self.assertEqual(resp.status_code, 200, resp.text)
        personal = resp.json()["personalInfo"]
        self.assertEqual(personal["email"], "new@example.com")
        self.assertEqual(personal["fullName"], "Ada Tenant")
        self.assertEqual(personal["phone"], "555-0100")

    def test_partial_update_cannot_blank_required_field(self):
        agent = self.create_agent()
        app_data = self.create_application(agent["id"])
        resp = self.client.patch(f"/api/applications/{app_data['id']}", json={"personalInfo": {"fullName": "  "}})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"]["step"], "personal")
        fetched = self.client.get(f"/api/applications/{app_data['id']}").json()
        self.assertEqual(fetched["personalInfo"]["fullName"], "Ada Tenant")

    def test_null_section_rejected(self):
        agent = self.create_agent()
        app_data = self.create_application(agent["id"])
        resp = self.client.patch(f"/api/applications/{app_data['id']}", json={"personalInfo": None})
        self.assertEqual(resp.status_code, 422)
        fetched = self.client.get(f"/api/applications/{app_data['id']}").json()
        self.assertEqual(fetched["personalInfo"], app_data["personalInfo"])

    def test_clearing_note_with_null_allowed(self):
        agent = self.create_agent()
        app_data = self.create_application(agent["id"])
        resp = self.client.patch(f"/api/applications/{app_data['id']}", json={"additionalInfoRequest": None})
        self.assertEqual(resp.status_code, 200)
        self.assertIsNone(resp.json()["additionalInfoRequest"])

    def test_update_missing_application_404(self):
        resp = self.client.patch("/api/applications/app-missing", json={"documents": []})
        self.assertEqual(resp.status_code, 404)


class TestStatusChanges(ApiTestCase):
    def test_info_requested_round_trip(self):
        agent = self.create_agent()
        app_data = self.create_application(agent["id"])
        resp = self.client.patch(
            f"/api/applications/{app_data['id']}/status",
            json={"status": "info-requested", "note": "Please send pay stubs"},
        )
        self.assertEqual(resp.status_code, 200)

        fetched = self.client.get(f"/api/applications/{app_data['id']}").json()
        self.assertEqual(fetched["status"], "info-requested")
        self.assertEqual(fetched["statusLabel"], "Info Requested")
        self.assertEqual(fetched["additionalInfoRequest"], "Please send pay stubs")

        status_page = self.client.get(f"/api/public/status/{app_data['id']}").json()
        self.assertEqual(status_page["additionalInfoRequest"], "Please send pay stubs")
        self.assertEqual(status_page["applicantName"], "Ada Tenant")

    def test_reopen_keeps_timestamps_moving(self):
        agent = self.create_agent()
        app_data = self.create_application(agent["id"])
        url = f"/api/applications/{app_data['id']}/status"
        approved = self.client.patch(url, json={"status": "approved"}).json()
        reopened = self.client.patch(url, json={"status": "pending"}).json()

        self.assertEqual(reopened["status"], "pending")
        created = datetime.fromisoformat(app_data["createdAt"])
        first = datetime.fromisoformat(approved["updatedAt"])
        second = datetime.fromisoformat(reopened["updatedAt"])
        self.assertGreater(first, created)
        self.assertGreater(second, first)

    def test_note_only_with_info_requested(self):
        agent = self.create_agent()
        app_data = self.create_application(agent["id"])
        resp = self.client.patch(
            f"/api/applications/{app_data['id']}/status", json={"status": "approved", "note": "Welcome"}
        )
        self.assertEqual(resp.status_code, 400)
        self.assertIn("note", resp.json()["detail"]["fields"])
        self.assertEqual(self.client.get(f"/api/applications/{app_data['id']}").json()["status"], "pending")

    def test_unknown_status_rejected(self):
        agent = self.create_agent()
        app_data = self.create_application(agent["id"])
        resp = self.client.patch(f"/api/applications/{app_data['id']}/status", json={"status": "archived"})
        self.assertEqual(resp.status_code, 400)

    def test_status_change_on_missing_application(self):
        resp = self.client.patch("/api/applications/app-missing/status", json={"status": "approved"})
        self.assertEqual(resp.status_code, 404)


class TestPublicLinks(ApiTestCase):
    def test_landlord_view_and_decision(self):
        agent = self.create_agent()
        app_data = self.create_application(agent["id"])

        view = self.client.get(f"/api/public/applications/{app_data['id']}").json()
        self.assertTrue(view["awaitingDecision"])
        self.assertEqual(view["agent"]["businessName"], "Smith Real Estate")
        self.assertEqual(view["availableDecisions"], ["approved", "info-requested", "rejected"])

        resp = self.client.post(f"/api/public/applications/{app_data['id']}/decision", json={"status": "rejected"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "rejected")

        view = self.client.get(f"/api/public/applications/{app_data['id']}").json()
        self.assertFalse(view["awaitingDecision"])

        status_page = self.client.get(f"/api/public/status/{app_data['id']}").json()
        self.assertEqual(status_page["label"], "Rejected")
        self.assertIsNone(status_page["additionalInfoRequest"])

    def test_landlord_cannot_forward(self):
        agent = self.create_agent()
        app_data = self.create_application(agent["id"])
        resp = self.client.post(f"/api/public/applications/{app_data['id']}/decision", json={"status": "forwarded"})
        self.assertEqual(resp.status_code, 422)

    def test_unknown_application_links(self):
        self.assertEqual(self.client.get("/api/public/status/app-missing").status_code, 404)
        self.assertEqual(self.client.get("/api/public/applications/app-missing").status_code, 404)


class TestIntake(ApiTestCase):
    def _pets_agent(self):
        return self.create_agent(
            urlSlug="jane-smith",
            customQuestions=[{"questionText": "Do you have any pets?", "required": True, "type": "radio", "options": ["Yes", "No"]}],
        )

    def test_form_definition(self):
        agent = self._pets_agent()
        form = self.client.get("/api/intake/jane-smith").json()
        self.assertEqual(form["agent"]["id"], agent["id"])
        self.assertEqual([s["id"] for s in form["steps"]][-1], "custom-questions")
        self.assertEqual(len(form["steps"]), 6)
        self.assertEqual(form["customQuestions"][0]["questionText"], "Do you have any pets?")
        self.assertIn("application/pdf", form["documentConstraints"]["allowedTypes"])

    def test_form_without_questions_has_five_steps(self):
        self.create_agent()
        form = self.client.get("/api/intake/jane-smith").json()
        self.assertEqual(len(form["steps"]), 5)

    def test_unknown_slug_gets_placeholder_agent(self):
        form = self.client.get("/api/intake/nobody-yet").json()
        self.assertTrue(form["agent"]["isPlaceholder"])
        self.assertEqual(form["agent"]["name"], "Default Agent")
        self.assertEqual(form["agent"]["urlSlug"], "nobody-yet")

        # The placeholder is persisted and reused
        again = self.client.get("/api/intake/nobody-yet").json()
        self.assertEqual(again["agent"]["id"], form["agent"]["id"])

    def test_step_validation(self):
        self._pets_agent()
        url = "/api/intake/jane-smith/steps/{}/validate"
        resp = self.client.post(url.format("personal"), json={"personalInfo": {"fullName": "Ada"}})
        self.assertEqual(resp.status_code, 200)
        result = resp.json()
        self.assertFalse(result["valid"])
        self.assertEqual(set(result["errors"]), {"personalInfo.email", "personalInfo.phone"})

        resp = self.client.post(url.format("documents"), json={})
        self.assertTrue(resp.json()["valid"])

        self.assertEqual(self.client.post(url.format("payment"), json={}).status_code, 404)

    def test_custom_step_missing_without_questions(self):
        self.create_agent()
        resp = self.client.post("/api/intake/jane-smith/steps/custom-questions/validate", json={})
        self.assertEqual(resp.status_code, 404)

    def test_pets_question_blocks_submit_until_answered(self):
        agent = self._pets_agent()
        question_id = agent["customQuestions"][0]["id"]

        resp = self.client.post("/api/intake/jane-smith/submit", json=_application_body())
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"]["step"], "custom-questions")
        self.assertEqual(self.client.get("/api/applications").json(), [])

        body = _application_body(customAnswers=[{"questionId": question_id, "answer": "Yes"}], status="approved")
        resp = self.client.post("/api/intake/jane-smith/submit", json=body)
        self.assertEqual(resp.status_code, 201, resp.text)
        created = resp.json()
        self.assertEqual(created["status"], "pending")
        self.assertEqual(created["agentId"], agent["id"])
        self.assertEqual(created["customAnswers"], [{"questionId": question_id, "answer": "Yes"}])
        self.assertEqual(created["questionSnapshot"][0]["questionText"], "Do you have any pets?")

    def test_checkbox_answers_stored_as_list(self):
        self.create_agent(
            customQuestions=[{"questionText": "Amenities?", "type": "checkbox", "options": ["Parking", "Gym", "Pool"]}],
        )
        question_id = self.client.get("/api/intake/jane-smith").json()["customQuestions"][0]["id"]
        body = _application_body(customAnswers=[{"questionId": question_id, "answer": "Parking, Pool"}])
        created = self.client.post("/api/intake/jane-smith/submit", json=body).json()
        self.assertEqual(created["customAnswers"][0]["answer"], ["Parking", "Pool"])

    def test_unlisted_radio_answer_rejected(self):
        agent = self._pets_agent()
        question_id = agent["customQuestions"][0]["id"]
        body = _application_body(customAnswers=[{"questionId": question_id, "answer": "Maybe"}])
        resp = self.client.post("/api/intake/jane-smith/submit", json=body)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"]["step"], "custom-questions")
        self.assertIn(f"customAnswers.{question_id}", resp.json()["detail"]["fields"])

    def test_disallowed_document_type_rejected(self):
        self.create_agent()
        document = {
            "id": "doc-1",
            "name": "setup.exe",
            "type": "application/x-msdownload",
            "url": "https://files.example.com/setup.exe",
            "uploadedAt": "2026-03-01T12:00:00+00:00",
        }
        resp = self.client.post("/api/intake/jane-smith/submit", json=_application_body(documents=[document]))
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"]["step"], "documents")
        self.assertEqual(self.client.get("/api/applications").json(), [])

    def test_attach_documents_builds_records(self):
        self.create_agent()
        resp = self.client.post("/api/intake/jane-smith/documents", json={"files": [
            {"name": "paystub.pdf", "type": "application/pdf", "size": 2048, "url": "https://files.example.com/p.pdf"},
            {"name": "huge.png", "type": "image/png", "size": 50 * 1024 * 1024, "url": "https://files.example.com/h.png"},
        ]})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual([d["name"] for d in data["documents"]], ["paystub.pdf"])
        self.assertIn("uploadedAt", data["documents"][0])
        self.assertEqual(data["errors"], ["File too large: huge.png"])

        # The returned records submit as-is
        created = self.client.post("/api/intake/jane-smith/submit", json=_application_body(documents=data["documents"]))
        self.assertEqual(created.status_code, 201, created.text)
        self.assertEqual(created.json()["documents"][0]["name"], "paystub.pdf")

    def test_malformed_slug_gets_no_placeholder(self):
        resp = self.client.get("/api/intake/Not_A_Slug")
        self.assertEqual(resp.status_code, 404)

    def test_submit_for_unknown_slug_404(self):
        resp = self.client.post("/api/intake/nobody/submit", json=_application_body())
        self.assertEqual(resp.status_code, 404)


class TestHealth(ApiTestCase):
    def test_health(self):
        self.assertEqual(self.client.get("/health").json(), {"status": "ok"})


if __name__ == "__main__":
    unittest.main()
