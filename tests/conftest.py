"""Pytest configuration helpers.

Puts ``backend/`` on ``sys.path`` so tests can import the ``pocketrot``
package regardless of how pytest is invoked, and pins the settings the test
suite relies on before anything reads them.
"""
import os
import sys
import tempfile


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
BACKEND = os.path.join(ROOT, "backend")
if BACKEND not in sys.path:
    sys.path.insert(0, BACKEND)

os.environ.setdefault("MEDIA_VOLUME", tempfile.mkdtemp(prefix="pocketrot-media-"))
os.environ.setdefault("MEDIA_BASE_URL", "http://testserver/media")
os.environ.setdefault("ARTIFACT_BACKEND", "local")
os.environ.setdefault("OPERATOR_EMAIL", "operator@pocketrot.test")
os.environ.setdefault("OPERATOR_PASSWORD", "hunter2")
os.environ.setdefault("OPERATOR_TOKEN", "test-operator-token")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")
os.environ.setdefault("USE_MOCK_API", "false")
