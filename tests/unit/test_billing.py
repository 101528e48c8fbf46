"""
Unit tests for billing repairs.
"""

from license_admin.billing import enforce_seat_minimums, link_billing_records, needs_link
from license_admin.records import Record


def seed_billing(db):
    db.seed("users", {"u1": {"email": "pay@example.com", "firebaseUid": "fb1"}})
    db.seed(
        "subscriptions",
        {
            "s1": {"userId": "u1", "tier": "PRO"},
            "s2": {"customerEmail": "PAY@example.com"},
            "s3": {"firebaseUid": "fb9", "userEmail": "done@example.com"},
        },
    )
    db.seed("invoices", {"i1": {"email": "nobody@example.com"}})


class TestLinkBillingRecords:
    def test_needs_link(self):
        assert needs_link(Record("a", {"firebaseUid": "x"}))
        assert needs_link(Record("b", {"userEmail": "x@example.com"}))
        assert not needs_link(Record("c", {"firebaseUid": "x", "userEmail": "x@example.com"}))

    def test_links_by_user_id_then_email(self, db):
        seed_billing(db)

        linked, unresolved = link_billing_records(db)

        assert linked == [("subscriptions", "s1"), ("subscriptions", "s2")]
        assert unresolved == [("invoices", "i1")]
        for doc_id in ("s1", "s2"):
            stored = db.doc("subscriptions", doc_id)
            assert stored["userId"] == "u1"
            assert stored["firebaseUid"] == "fb1"
            assert stored["userEmail"] == "pay@example.com"
        assert "userId" not in db.doc("subscriptions", "s3")

    def test_dry_run(self, db):
        seed_billing(db)

        linked, _ = link_billing_records(db, dry_run=True)

        assert len(linked) == 2
        assert "firebaseUid" not in db.doc("subscriptions", "s1")


class TestEnforceSeatMinimums:
    def seed(self, db):
        db.seed(
            "subscriptions",
            {
                "pro": {"tier": "PRO", "seats": 3},
                "ent": {"tier": "ENTERPRISE", "seats": 60},
                "legacy": {"tier": "PROFESSIONAL"},
                "basic": {"tier": "BASIC", "seats": 1},
            },
        )

    def test_default_minimums(self, db):
        self.seed(db)

        raised = enforce_seat_minimums(db)

        assert [(s.id, old, new) for s, old, new in raised] == [("pro", 3, 10), ("legacy", 0, 10)]
        assert db.doc("subscriptions", "pro")["seats"] == 10
        assert db.doc("subscriptions", "ent")["seats"] == 60
        assert db.doc("subscriptions", "basic")["seats"] == 1

    def test_custom_minimums(self, db):
        self.seed(db)

        raised = enforce_seat_minimums(db, {"pro": 5}, dry_run=True)

        assert [(s.id, new) for s, _, new in raised] == [("pro", 5), ("legacy", 5)]
        assert db.doc("subscriptions", "pro")["seats"] == 3
