"""
Public site endpoints (contact form, gallery, testimonials) and their admin side
"""
import pytest
from httpx import AsyncClient

from app.schemas.contact import ContactRequestCreate
from app.services.contact import compose_message
from app.services.document_store import PAST_PROJECTS


# ── Contact ─────────────────────────────────────────────────
class TestContact:

    @pytest.mark.asyncio
    async def test_submit_and_triage(self, client: AsyncClient, admin_headers):
        response = await client.post("/contact", data={
            "username": "Ada Lovelace",
            "email": "ada@example.com",
            "phone": "555-0100",
            "message": "I'd like a walnut desk.",
            "budget": "$5k-$10k",
            "contractor_involved": "Yes",
            "designer_involved": "no",
            "additional_details": "Standing height",
        })
        assert response.status_code == 201
        assert response.json() == {"success": True, "message": "Contact request submitted successfully"}

        inbox = (await client.get("/admin/contact-requests", headers=admin_headers)).json()
        assert len(inbox) == 1
        request = inbox[0]
        assert request["name"] == "Ada Lovelace"
        assert request["status"] == "new"
        assert request["contractor_involved"] is True
        assert request["designer_involved"] is False
        assert request["message"] == (
            "I'd like a walnut desk.\n\n"
            "Budget: $5k-$10k\n\n"
            "Contractor Involved: Yes\n\n"
            "Additional Details:\nStanding height"
        )

        updated = await client.patch(
            f"/admin/contact-requests/{request['id']}", json={"status": "replied"}, headers=admin_headers,
        )
        assert updated.status_code == 200
        assert updated.json()["status"] == "replied"

        deleted = await client.delete(f"/admin/contact-requests/{request['id']}", headers=admin_headers)
        assert deleted.status_code == 204

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["name", "email", "message"])
    async def test_missing_required_field_is_400(self, client: AsyncClient, missing):
        form = {"name": "Ada", "email": "ada@example.com", "message": "Hello"}
        form[missing] = "   "
        response = await client.post("/contact", data=form)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_status_is_422(self, client: AsyncClient, admin_headers):
        await client.post("/contact", data={"name": "Ada", "email": "a@example.com", "message": "Hi"})
        request = (await client.get("/admin/contact-requests", headers=admin_headers)).json()[0]

        response = await client.patch(
            f"/admin/contact-requests/{request['id']}", json={"status": "spam"}, headers=admin_headers,
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_missing_request_is_404(self, client: AsyncClient, admin_headers):
        response = await client.patch(
            "/admin/contact-requests/contact_missing", json={"status": "read"}, headers=admin_headers,
        )
        assert response.status_code == 404

    def test_compose_message_without_extras(self):
        payload = ContactRequestCreate(name="Ada", email="a@example.com", message="  Just this.  ")
        assert compose_message(payload) == "Just this."


# ── Feedback (admin) ────────────────────────────────────────
class TestAdminFeedback:

    @pytest.mark.asyncio
    async def test_manual_testimonial(self, client: AsyncClient, admin_headers):
        created = await client.post("/admin/feedback", json={
            "project_name": "Cherry Bookcase",
            "rating": 5,
            "comment": "Heirloom quality.",
            "client_name": "Grace",
            "is_testimonial": True,
        }, headers=admin_headers)
        assert created.status_code == 201
        feedback_id = created.json()["id"]
        assert feedback_id.startswith("feedback_")

        testimonials = (await client.get("/testimonials")).json()
        assert [t["client_name"] for t in testimonials] == ["Grace"]

    @pytest.mark.asyncio
    async def test_comment_cannot_be_cleared(self, client: AsyncClient, admin_headers):
        created = (await client.post("/admin/feedback", json={
            "project_name": "Bench", "rating": 4, "comment": "Solid.",
        }, headers=admin_headers)).json()

        response = await client.patch(
            f"/admin/feedback/{created['id']}",
            json={"client_name": "", "rating": 3},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["rating"] == 3
        assert data["comment"] == "Solid."
        assert data["client_name"] is None

    @pytest.mark.asyncio
    async def test_delete_missing_is_404(self, client: AsyncClient, admin_headers):
        response = await client.delete("/admin/feedback/feedback_missing", headers=admin_headers)
        assert response.status_code == 404


# ── Past projects ───────────────────────────────────────────
@pytest.fixture
def gallery_entry():
    return {
        "project_token": "jw-aaaa-bbbb-cccc",
        "title": "Walnut Dining Table",
        "description": "Eight seats",
        "selected_images": [
            {"url": "https://ik/1.jpg", "file_id": "f1", "is_featured": True},
            {"url": "https://ik/2.jpg", "file_id": "f2", "is_featured": False},
        ],
        "is_featured_on_home_page": True,
    }


class TestPastProjects:

    @pytest.mark.asyncio
    async def test_public_sees_featured_images_only(self, client: AsyncClient, admin_headers, gallery_entry):
        created = await client.post("/admin/past-projects", json=gallery_entry, headers=admin_headers)
        assert created.status_code == 201
        assert created.json()["project_token"] == "JW-AAAA-BBBB-CCCC"

        admin_view = (await client.get("/admin/past-projects", headers=admin_headers)).json()
        public_view = (await client.get("/past-projects")).json()

        assert len(admin_view[0]["selected_images"]) == 2
        assert [img["url"] for img in public_view[0]["selected_images"]] == ["https://ik/1.jpg"]

    @pytest.mark.asyncio
    async def test_home_page_needs_flag_and_featured_image(
        self, client: AsyncClient, admin_headers, gallery_entry, store,
    ):
        await client.post("/admin/past-projects", json=gallery_entry, headers=admin_headers)
        await client.post("/admin/past-projects", json={
            **gallery_entry, "project_token": None, "title": "Not on home page",
            "is_featured_on_home_page": False,
        }, headers=admin_headers)
        await client.post("/admin/past-projects", json={
            **gallery_entry, "project_token": None, "title": "Nothing featured",
            "selected_images": [{"url": "https://ik/3.jpg", "is_featured": False}],
        }, headers=admin_headers)

        featured = (await client.get("/past-projects/featured")).json()

        assert [e["title"] for e in featured] == ["Walnut Dining Table"]
        assert len(await store.query_all(PAST_PROJECTS, order_by="completed_at")) == 3

    @pytest.mark.asyncio
    async def test_lookup_by_project_token(self, client: AsyncClient, admin_headers, gallery_entry):
        created = (await client.post("/admin/past-projects", json=gallery_entry, headers=admin_headers)).json()

        found = await client.get("/admin/past-projects/by-token/jw-aaaa-bbbb-cccc", headers=admin_headers)
        missing = await client.get("/admin/past-projects/by-token/JW-ZZZZ-ZZZZ-ZZZZ", headers=admin_headers)

        assert found.json()["id"] == created["id"]
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_update_and_delete(self, client: AsyncClient, admin_headers, gallery_entry):
        created = (await client.post("/admin/past-projects", json=gallery_entry, headers=admin_headers)).json()
        url = f"/admin/past-projects/{created['id']}"

        updated = await client.patch(url, json={"description": "", "title": "Walnut Table"}, headers=admin_headers)
        assert updated.status_code == 200
        assert updated.json()["title"] == "Walnut Table"
        assert updated.json()["description"] is None
        assert updated.json()["project_token"] == "JW-AAAA-BBBB-CCCC"

        assert (await client.delete(url, headers=admin_headers)).status_code == 204
        assert (await client.get(url, headers=admin_headers)).status_code == 404
