"""Unit tests for identity_linker module."""

import threading
import unittest
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

from adapter.fake.user_repository import FakeUserRepository
from domain.model.errors import DuplicateError, LinkConflictError, ProfileIncompleteError
from domain.model.user import ExternalIdentity
from services.identity_linker import link_external_identity


def _identity(**kwargs) -> ExternalIdentity:
    defaults = {
        "subject_id": "google-sub-1",
        "email": "Person@Example.com",
        "display_name": "Test Person",
        "email_verified": True,
    }
    defaults.update(kwargs)
    return ExternalIdentity(**defaults)


class TestLinkExternalIdentity(unittest.TestCase):
    """Test link_external_identity function."""

    def setUp(self):
        self.repo = FakeUserRepository()

    def test_creates_new_user(self):
        user = link_external_identity(self.repo, _identity())

        self.assertEqual(user.email, "person@example.com")
        self.assertEqual(user.google_id, "google-sub-1")
        self.assertEqual(user.display_name, "Test Person")
        self.assertTrue(user.email_verified)
        self.assertEqual(len(self.repo.store), 1)

    def test_unverified_provider_email_stays_unverified(self):
        user = link_external_identity(self.repo, _identity(email_verified=False))
        self.assertFalse(user.email_verified)

        user = link_external_identity(self.repo, _identity(email_verified=True))
        self.assertTrue(user.email_verified)

        user = link_external_identity(self.repo, _identity(email_verified=False))
        self.assertTrue(user.email_verified)

    def test_idempotent(self):
        first = link_external_identity(self.repo, _identity())
        second = link_external_identity(self.repo, _identity())

        self.assertEqual(first.id, second.id)
        self.assertEqual(len(self.repo.store), 1)

    def test_claims_unlinked_account_with_same_email(self):
        existing = self.repo.create(email="person@example.com", password_hash="hash")

        user = link_external_identity(self.repo, _identity())

        self.assertEqual(user.id, existing.id)
        self.assertEqual(user.google_id, "google-sub-1")
        self.assertTrue(user.email_verified)
        self.assertEqual(user.password_hash, "hash")
        self.assertEqual(len(self.repo.store), 1)

    def test_claim_keeps_existing_display_name(self):
        existing = self.repo.create(email="person@example.com", password_hash="hash", display_name="Chosen")

        user = link_external_identity(self.repo, _identity(display_name="From Google"))

        self.assertEqual(user.id, existing.id)
        self.assertEqual(user.display_name, "Chosen")

    def test_subject_link_takes_priority_over_email(self):
        linked = link_external_identity(self.repo, _identity(email="old@example.com"))
        other = self.repo.create(email="new@example.com", password_hash="hash")

        # Provider now reports an email owned by a different unlinked account
        user = link_external_identity(self.repo, _identity(email="new@example.com"))

        self.assertEqual(user.id, linked.id)
        self.assertEqual(user.email, "old@example.com")
        self.assertIsNone(self.repo.get_by_id(other.id).google_id)
        self.assertEqual(len(self.repo.store), 2)

    def test_returning_user_gets_display_name_if_unset(self):
        link_external_identity(self.repo, _identity(display_name=None))

        user = link_external_identity(self.repo, _identity(display_name="Now Named"))

        self.assertEqual(user.display_name, "Now Named")

    def test_email_linked_to_other_subject_conflicts(self):
        link_external_identity(self.repo, _identity(subject_id="sub-A"))

        with self.assertRaises(LinkConflictError):
            link_external_identity(self.repo, _identity(subject_id="sub-B"))
        self.assertEqual(len(self.repo.store), 1)

    def test_missing_email_creates_nothing(self):
        with self.assertRaises(ProfileIncompleteError):
            link_external_identity(self.repo, _identity(email=None))
        with self.assertRaises(ProfileIncompleteError):
            link_external_identity(self.repo, _identity(email="   "))
        self.assertEqual(len(self.repo.store), 0)

    def test_missing_subject_creates_nothing(self):
        with self.assertRaises(ProfileIncompleteError):
            link_external_identity(self.repo, _identity(subject_id=None))
        self.assertEqual(len(self.repo.store), 0)

    def test_lost_race_resolves_to_winner(self):
        """A unique violation followed by a successful subject lookup returns that user."""
        winner = MagicMock(id="winner")
        repo = MagicMock()
        repo.touch_google_login.side_effect = [None, winner]
        repo.claim_or_create_by_email.side_effect = DuplicateError("dup")

        user = link_external_identity(repo, _identity())

        self.assertIs(user, winner)
        self.assertEqual(repo.touch_google_login.call_count, 2)


class TestConcurrentLinking(unittest.TestCase):
    """Simultaneous callbacks for a brand-new email must produce one user."""

    def test_parallel_links_create_one_row(self):
        repo = FakeUserRepository()
        barrier = threading.Barrier(8)

        def link():
            barrier.wait()
            return link_external_identity(repo, _identity())

        with ThreadPoolExecutor(max_workers=8) as pool:
            users = list(pool.map(lambda _: link(), range(8)))

        self.assertEqual(len({u.id for u in users}), 1)
        self.assertEqual(len(repo.store), 1)


if __name__ == '__main__':
    unittest.main()
