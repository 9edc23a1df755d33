import unittest
from unittest.mock import patch

from carefever.contacts import EmergencyContactService
from carefever.errors import InvalidRequestError
from carefever.records import PastRecordService
from carefever.store import InMemoryDocumentStore
from carefever.users import UserService
from carefever.webhooks import IdentityEvent
from shared.api import EmergencyContact, PastRecord, SosInfo


class CountingDocumentStore(InMemoryDocumentStore):
    def __init__(self):
        super().__init__()
        self.commits = []

    def commit(self, batch):
        self.commits.append(len(batch))
        super().commit(batch)


class UserServiceTests(unittest.TestCase):
    def setUp(self):
        self.store = CountingDocumentStore()
        self.users = UserService(self.store)

    def test_created_event_without_email_addresses(self):
        applied = self.users.apply_identity_event(
            IdentityEvent(type="user.created", data={"id": "user_1"})
        )
        self.assertTrue(applied)
        self.assertEqual(
            self.store.get("users/user_1"),
            {
                "clerkUserId": "user_1",
                "email": "",
                "firstName": "",
                "lastName": "",
                "imageUrl": "",
                "createdAt": None,
            },
        )

    def test_replayed_created_event_is_idempotent(self):
        event = IdentityEvent(
            type="user.created",
            data={"id": "user_1", "email_addresses": [{"email_address": "a@b.c"}]},
        )
        self.users.apply_identity_event(event)
        first = self.store.get("users/user_1")
        self.users.apply_identity_event(event)
        self.assertEqual(self.store.get("users/user_1"), first)

    def test_event_without_user_id_rejected(self):
        with self.assertRaises(InvalidRequestError):
            self.users.apply_identity_event(IdentityEvent(type="user.updated", data={}))

    def test_unknown_event_type_is_noop(self):
        self.assertFalse(
            self.users.apply_identity_event(
                IdentityEvent(type="email.created", data={"id": "user_1"})
            )
        )
        self.assertEqual(self.store.documents, {})

    @patch("carefever.users.MAX_BATCH_WRITES", 3)
    def test_delete_splits_large_cascades_into_batches(self):
        self.store.set("users/user_1", {"email": "a@b.c"})
        for i in range(5):
            self.store.set(f"users/user_1/past-records/r{i}", {"n": i})
        self.store.set("users/user_2/past-records/keep", {"n": 0})

        self.users.apply_identity_event(
            IdentityEvent(type="user.deleted", data={"id": "user_1"})
        )

        self.assertEqual(self.store.commits, [3, 3])
        self.assertEqual(
            list(self.store.documents), ["users/user_2/past-records/keep"]
        )

    def test_sos_info_is_trimmed(self):
        self.users.update_sos_info(
            "user_1", SosInfo(name="  Uma ", age=1, last_location=" Home ")
        )
        self.assertEqual(
            self.store.get("users/user_1")["sosInfo"],
            {"name": "Uma", "age": 1, "lastLocation": "Home"},
        )

    def test_sos_info_requires_location(self):
        with self.assertRaises(InvalidRequestError):
            self.users.update_sos_info(
                "user_1", SosInfo(name="Uma", age=30, last_location="  ")
            )


class EmergencyContactServiceTests(unittest.TestCase):
    def setUp(self):
        self.store = CountingDocumentStore()
        self.contacts = EmergencyContactService(self.store)

    def test_replace_is_a_single_batch(self):
        self.contacts.save_contacts(
            "u1", [EmergencyContact(name="A", phone="555", relation="Friend")]
        )
        self.contacts.save_contacts(
            "u1",
            [
                EmergencyContact(name="B", phone="666", relation="Parent"),
                EmergencyContact(
                    name="C", phone="777", relation="Sibling", location="Pune"
                ),
            ],
        )

        # Second commit deletes one and inserts two.
        self.assertEqual(self.store.commits, [1, 3])
        stored = {c["name"]: c for c in self.contacts.get_contacts("u1")}
        self.assertEqual(sorted(stored), ["B", "C"])
        self.assertEqual(stored["C"]["location"], "Pune")

    def test_missing_user_id_rejected(self):
        with self.assertRaises(InvalidRequestError):
            self.contacts.save_contacts(
                "", [EmergencyContact(name="A", phone="555", relation="Friend")]
            )
        self.assertEqual(self.store.commits, [])


class PastRecordServiceTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryDocumentStore()
        self.records = PastRecordService(self.store)

    def _record(self, severity="Mild", **overrides):
        fields = dict(
            fever_severity=severity,
            possible_fever_causes="Flu",
            fever_management_tips=["Rest"],
            otc_medicines=["Ibuprofen"],
            urgent_care_alert="None",
            red_flags_to_watch_for={"breathing": "Shortness of breath"},
        )
        fields.update(overrides)
        return PastRecord(**fields)

    def test_structured_values_stored_untouched(self):
        record_id = self.records.append_record(
            "u1", self._record(red_flags_to_watch_for={"chest_pain": "Call 911"})
        )
        stored = self.store.get(f"users/u1/past-records/{record_id}")
        self.assertEqual(stored["redFlagsToWatchFor"], {"chest_pain": "Call 911"})
        self.assertNotIn("symptoms", stored)

    def test_list_count_matches_appends(self):
        for severity in ["Mild", "High", "Low", "Moderate"]:
            self.records.append_record("u1", self._record(severity))
        records = self.records.list_records("u1")
        self.assertEqual(
            [r["feverSeverity"] for r in records], ["Moderate", "Low", "High", "Mild"]
        )

    def test_blank_required_field_rejected(self):
        with self.assertRaises(InvalidRequestError):
            self.records.append_record("u1", self._record(urgent_care_alert=""))

    def test_non_positive_limit_rejected(self):
        with self.assertRaises(InvalidRequestError):
            self.records.list_records("u1", limit=0)


if __name__ == "__main__":
    unittest.main()
