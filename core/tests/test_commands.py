from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from core.storage import PROJECT_RESULTS, get_store
from .utils import TempMediaMixin, image


class CollectOrphansCommandTests(TempMediaMixin, TestCase):
    def test_removes_unreferenced_files(self):
        store = get_store(PROJECT_RESULTS)
        handle = store.put(image())

        out = StringIO()
        call_command("collect_orphans", "--grace", "0", stdout=out)

        self.assertFalse(store.exists(handle))
        self.assertIn("Removed 1 orphaned file(s)", out.getvalue())
