"""Unit tests for the eperson, group and item services (client mocked)."""
import json
from unittest.mock import Mock

import pytest

from dspace_provisioning.core.dspace.client import DSpaceClient, HttpOutcome, URI_LIST_CONTENT_TYPE
from dspace_provisioning.core.dspace.endpoints import EPERSONS, GROUPS, ITEMS
from dspace_provisioning.core.dspace.epersons import EPersonService
from dspace_provisioning.core.dspace.exceptions import ConflictError, NotFoundError, ValidationError
from dspace_provisioning.core.dspace.filters import EqualsFilter
from dspace_provisioning.core.dspace.groups import GroupService
from dspace_provisioning.core.dspace.items import ItemService
from dspace_provisioning.core.dspace.models import Resource
from tests.conftest import BASE_URL

ANA = {
    "id": "e1",
    "email": "ana@example.org",
    "canLogIn": True,
    "metadata": {"eperson.firstname": [{"value": "Ana"}], "eperson.lastname": [{"value": "Silva"}]},
}


def outcome(body=None, status=200, method="GET", path=""):
    text = json.dumps(body) if body is not None else ""
    return HttpOutcome(status_code=status, body=text, method=method, path=path)


def collection(key, items, total_pages=1, number=0):
    return {
        "_embedded": {key: items},
        "page": {"size": 20, "totalElements": len(items), "totalPages": total_pages, "number": number},
    }


@pytest.fixture
def mock_client():
    client = Mock(spec=DSpaceClient)
    client.base_url = BASE_URL
    return client


# ─────────────────────────────────────────────────────────────────────────────
# EPersons
# ─────────────────────────────────────────────────────────────────────────────

class TestEPersonService:
    def test_get(self, mock_client):
        mock_client.get.return_value = outcome(ANA)

        person = EPersonService(mock_client).get("e1")

        mock_client.get.assert_called_once_with(f"{EPERSONS}/e1")
        assert person.get("firstname") == "Ana"

    def test_get_rejects_blank_id(self, mock_client):
        with pytest.raises(ValidationError):
            EPersonService(mock_client).get("  ")
        mock_client.get.assert_not_called()

    def test_search_by_id_is_direct_lookup(self, mock_client):
        mock_client.get.return_value = outcome(ANA)

        page = EPersonService(mock_client).search(EqualsFilter("id", "e1"))

        mock_client.get.assert_called_once_with(f"{EPERSONS}/e1")
        assert [p.id for p in page] == ["e1"]

    def test_search_by_unknown_id_is_empty(self, mock_client):
        mock_client.get.side_effect = NotFoundError("GET failed: Not Found", status_code=404)

        page = EPersonService(mock_client).search(EqualsFilter("uuid", "missing"))

        assert len(page) == 0
        assert page.total_elements == 0

    def test_search_by_email_uses_search_endpoint(self, mock_client):
        mock_client.get.return_value = outcome(ANA)

        page = EPersonService(mock_client).search(EqualsFilter("email", "ana@example.org"))

        mock_client.get.assert_called_once_with(
            f"{EPERSONS}/search/byEmail?email=ana%40example.org",
            params={"page": 0, "size": 20},
        )
        assert page.items[0].id == "e1"

    def test_search_by_metadata_decodes_collection(self, mock_client):
        mock_client.get.return_value = outcome(collection("epersons", [ANA]))

        page = EPersonService(mock_client).search(EqualsFilter("lastname", "Silva"), size=5)

        mock_client.get.assert_called_once_with(
            f"{EPERSONS}/search/byMetadata?query=Silva",
            params={"page": 0, "size": 5},
        )
        assert len(page) == 1

    def test_search_without_filter_lists(self, mock_client):
        mock_client.get.return_value = outcome(collection("epersons", []))

        page = EPersonService(mock_client).search(None)

        mock_client.get.assert_called_once_with(EPERSONS, params={"page": 0, "size": 20})
        assert len(page) == 0

    def test_search_by_unsupported_attribute_is_rejected(self, mock_client):
        with pytest.raises(ValidationError):
            EPersonService(mock_client).search(EqualsFilter("phone", "555"))
        mock_client.get.assert_not_called()

    def test_get_by_email_without_match(self, mock_client):
        mock_client.get.return_value = outcome(status=204)
        assert EPersonService(mock_client).get_by_email("nobody@example.org") is None

    def test_create_validates_and_defaults(self, mock_client):
        mock_client.post.return_value = outcome(ANA, status=201, method="POST", path=EPERSONS)
        person = Resource.from_mapping({"email": " ANA@Example.org ", "firstname": "Ana", "lastname": "Silva"})

        created = EPersonService(mock_client).create(person)

        path, payload = mock_client.post.call_args.args
        assert path == EPERSONS
        assert payload["email"] == "ana@example.org"
        assert payload["canLogIn"] is False
        assert payload["requireCertificate"] is False
        assert payload["metadata"]["eperson.lastname"] == [{"value": "Silva"}]
        assert created.id == "e1"

    @pytest.mark.parametrize(
        "attributes",
        [
            {"firstname": "Ana", "lastname": "Silva"},
            {"email": "ana@example.org", "lastname": "Silva"},
            {"email": "ana@example.org", "firstname": "Ana"},
            {"email": "not-an-email", "firstname": "Ana", "lastname": "Silva"},
        ],
    )
    def test_create_rejects_incomplete_person(self, mock_client, attributes):
        with pytest.raises(ValidationError):
            EPersonService(mock_client).create(Resource.from_mapping(attributes))
        mock_client.post.assert_not_called()

    def test_create_keeps_every_name_value(self, mock_client):
        mock_client.post.return_value = outcome(ANA, status=201, method="POST", path=EPERSONS)
        person = Resource.from_mapping(
            {"email": "ana@example.org", "firstname": ["Ana", " Maria "], "lastname": "O'Brien"}
        )

        EPersonService(mock_client).create(person)

        _, payload = mock_client.post.call_args.args
        assert payload["metadata"]["eperson.firstname"] == [{"value": "Ana"}, {"value": "Maria"}]
        assert payload["metadata"]["eperson.lastname"] == [{"value": "O'Brien"}]

    @pytest.mark.parametrize(
        "attributes",
        [
            {"email": "ana@example.org", "firstname": ["Ana", ""], "lastname": "Silva"},
            {"email": "ana@example.org", "firstname": [], "lastname": "Silva"},
            {"email": ["ana@example.org", "ana@other.org"], "firstname": "Ana", "lastname": "Silva"},
        ],
    )
    def test_create_rejects_invalid_multi_values(self, mock_client, attributes):
        with pytest.raises(ValidationError):
            EPersonService(mock_client).create(Resource.from_mapping(attributes))
        mock_client.post.assert_not_called()

    def test_identifier_is_escaped_in_path(self, mock_client):
        mock_client.get.side_effect = NotFoundError("GET failed: Not Found", status_code=404)

        EPersonService(mock_client).search(EqualsFilter("id", "../groups/g1?x=1"))

        mock_client.get.assert_called_once_with(f"{EPERSONS}/..%2Fgroups%2Fg1%3Fx%3D1")

    def test_create_conflict_propagates(self, mock_client):
        mock_client.post.side_effect = ConflictError("POST failed: Conflict", status_code=409)
        person = Resource.from_mapping({"email": "ana@example.org", "firstname": "Ana", "lastname": "Silva"})

        with pytest.raises(ConflictError):
            EPersonService(mock_client).create(person)

    def test_patch_sends_operations_and_refetches_on_empty_body(self, mock_client):
        mock_client.patch.return_value = outcome(status=204, method="PATCH")
        mock_client.get.return_value = outcome(ANA)

        person = EPersonService(mock_client).patch("e1", {"canLogIn": False})

        mock_client.patch.assert_called_once_with(
            f"{EPERSONS}/e1",
            [{"op": "replace", "path": "/canLogin", "value": False}],
        )
        mock_client.get.assert_called_once_with(f"{EPERSONS}/e1")
        assert person.id == "e1"

    def test_patch_without_changes_is_rejected(self, mock_client):
        with pytest.raises(ValidationError):
            EPersonService(mock_client).patch("e1", {})
        mock_client.patch.assert_not_called()

    def test_update_puts_full_representation(self, mock_client):
        mock_client.put.return_value = outcome(ANA, method="PUT")
        person = Resource.from_mapping({"email": "ana@example.org", "firstname": "Ana"}, id="e1")

        EPersonService(mock_client).update(person)

        path, payload = mock_client.put.call_args.args
        assert path == f"{EPERSONS}/e1"
        assert payload["id"] == "e1"
        assert payload["metadata"] == {"eperson.firstname": [{"value": "Ana"}]}

    def test_update_requires_id(self, mock_client):
        with pytest.raises(ValidationError):
            EPersonService(mock_client).update(Resource.from_mapping({"email": "ana@example.org"}))

    def test_delete(self, mock_client):
        mock_client.delete.return_value = outcome(status=204, method="DELETE")
        EPersonService(mock_client).delete("e1")
        mock_client.delete.assert_called_once_with(f"{EPERSONS}/e1")

    def test_iter_all_follows_pages(self, mock_client):
        second = dict(ANA, id="e2")
        mock_client.get.side_effect = [
            outcome(collection("epersons", [ANA], total_pages=2, number=0)),
            outcome(collection("epersons", [second], total_pages=2, number=1)),
        ]

        ids = [person.id for person in EPersonService(mock_client).iter_all(size=1)]

        assert ids == ["e1", "e2"]
        assert mock_client.get.call_count == 2
        assert mock_client.get.call_args.kwargs["params"] == {"page": 1, "size": 1}


# ─────────────────────────────────────────────────────────────────────────────
# Groups
# ─────────────────────────────────────────────────────────────────────────────

class TestGroupService:
    def test_create_requires_name(self, mock_client):
        with pytest.raises(ValidationError, match="Group name"):
            GroupService(mock_client).create(Resource())
        mock_client.post.assert_not_called()

    def test_create_sends_name(self, mock_client):
        mock_client.post.return_value = outcome({"id": "g1", "name": "Staff", "metadata": {}}, status=201)

        group = GroupService(mock_client).create(Resource.from_mapping({"name": "Staff", "description": "All staff"}))

        path, payload = mock_client.post.call_args.args
        assert path == GROUPS
        assert payload["name"] == "Staff"
        assert payload["metadata"] == {"dc.description": [{"value": "All staff"}]}
        assert group.display_name == "Staff"

    def test_add_member_posts_uri_list(self, mock_client):
        mock_client.post.return_value = outcome(status=204, method="POST")

        GroupService(mock_client).add_member("g1", "e1")

        mock_client.post.assert_called_once_with(
            f"{GROUPS}/g1/epersons",
            f"{BASE_URL}{EPERSONS}/e1",
            content_type=URI_LIST_CONTENT_TYPE,
        )

    def test_remove_member(self, mock_client):
        mock_client.delete.return_value = outcome(status=204, method="DELETE")

        GroupService(mock_client).remove_member("g1", "e1")

        mock_client.delete.assert_called_once_with(f"{GROUPS}/g1/epersons/e1")

    def test_member_paths_escape_identifiers(self, mock_client):
        mock_client.delete.return_value = outcome(status=204, method="DELETE")

        GroupService(mock_client).remove_member("g/1", "e?1")

        mock_client.delete.assert_called_once_with(f"{GROUPS}/g%2F1/epersons/e%3F1")

    def test_member_operations_require_ids(self, mock_client):
        service = GroupService(mock_client)
        with pytest.raises(ValidationError):
            service.add_member("", "e1")
        with pytest.raises(ValidationError):
            service.remove_member("g1", None)

    def test_list_members_decodes_epersons(self, mock_client):
        mock_client.get.return_value = outcome(collection("epersons", [ANA]))

        page = GroupService(mock_client).list_members("g1")

        mock_client.get.assert_called_once_with(f"{GROUPS}/g1/epersons", params={"page": 0, "size": 20})
        assert page.items[0].get("email") == "ana@example.org"


# ─────────────────────────────────────────────────────────────────────────────
# Items
# ─────────────────────────────────────────────────────────────────────────────

class TestItemService:
    def test_create_requires_owning_collection(self, mock_client):
        with pytest.raises(ValidationError, match="Owning collection"):
            ItemService(mock_client).create(Resource.from_mapping({"title": "Thesis"}))
        mock_client.post.assert_not_called()

    def test_create_in_collection(self, mock_client):
        mock_client.post.return_value = outcome(
            {"id": "i1", "name": "Thesis", "inArchive": True, "metadata": {"dc.title": [{"value": "Thesis"}]}},
            status=201,
        )

        item = ItemService(mock_client).create(
            Resource.from_mapping({"title": "Thesis", "inArchive": True}),
            owning_collection="c1",
        )

        path, payload = mock_client.post.call_args.args
        assert path == ITEMS
        assert mock_client.post.call_args.kwargs["params"] == {"owningCollection": "c1"}
        assert payload["inArchive"] is True
        assert payload["metadata"] == {"dc.title": [{"value": "Thesis"}]}
        assert item.get("title") == "Thesis"
