"""
End-to-end tests for the bbs-notify CLI.

Runs the installed `bbs-notify` command against a local stand-in for the
Bitbucket build-status endpoint and checks what it receives.
"""

import base64
import hashlib
import json
import os
import subprocess
import tempfile
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

SHA = "3f786850e387550fdab836ed7e6dc881de23001b"


class BuildStatusHandler(BaseHTTPRequestHandler):
    """Records every POST and answers with the configured status code."""

    def do_POST(self):
        length = int(self.headers.get("Content-Length", 0))
        self.server.received.append(
            {
                "path": self.path,
                "headers": dict(self.headers),
                "body": json.loads(self.rfile.read(length)),
            }
        )
        self.send_response(self.server.status_code)
        self.end_headers()

    def log_message(self, format, *args):
        pass


@pytest.fixture
def bitbucket_server():
    """Local build-status endpoint on a free port."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), BuildStatusHandler)
    server.received = []
    server.status_code = 204
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    yield server

    server.shutdown()
    server.server_close()


@pytest.fixture
def test_db_path():
    """Credential store holding the bot credentials."""
    fd, path = tempfile.mkstemp(suffix=".db", prefix="bbs_notify_test_")
    os.close(fd)

    env = os.environ.copy()
    env.update({"BBS_DB_PATH": path, "BBS_SECRET": "s3cr3t"})
    result = subprocess.run(
        ["bbs-admin", "credentials", "add", "bitbucket", "--username", "ci-bot"],
        capture_output=True,
        text=True,
        env=env,
    )
    assert result.returncode == 0, result.stderr

    yield path

    if os.path.exists(path):
        os.unlink(path)


def run_notify_command(*args, server, db_path, env=None):
    """Helper to run bbs-notify as the job engine would."""
    host = f"http://127.0.0.1:{server.server_port}"
    cmd_env = os.environ.copy()
    for name in list(cmd_env):
        if name.startswith("GIT_") or name.startswith("BBS_"):
            del cmd_env[name]
    cmd_env.update(
        {
            "BBS_DB_PATH": db_path,
            "BBS_HOST": host,
            "BBS_CREDENTIALS_ID": "bitbucket",
            "NO_PROXY": "127.0.0.1",
            "JOB_NAME": "acme/widgets",
            "BUILD_NUMBER": "7",
            "BUILD_URL": "https://ci.example.com/job/acme/job/widgets/7/",
            "GIT_COMMIT": SHA,
            "GIT_URL": f"{host}/scm/acme/widgets.git",
        }
    )
    if env:
        cmd_env.update(env)

    return subprocess.run(
        ["bbs-notify", *args],
        capture_output=True,
        text=True,
        env=cmd_env,
    )


class TestNotifyCommand:
    """Test suite for bbs-notify against a live HTTP endpoint."""

    def test_finish_posts_build_status(self, bitbucket_server, test_db_path):
        """Test the full request: path, auth, content type and payload."""
        result = run_notify_command(
            "finish", "--result", "SUCCESS",
            server=bitbucket_server, db_path=test_db_path,
        )

        assert result.returncode == 0, result.stdout + result.stderr
        assert len(bitbucket_server.received) == 1

        request = bitbucket_server.received[0]
        assert request["path"] == f"/rest/build-status/1.0/commits/{SHA}"
        assert request["headers"]["Content-Type"] == "application/json; charset=utf-8"
        expected_auth = base64.b64encode(b"ci-bot:s3cr3t").decode()
        assert request["headers"]["Authorization"] == f"Basic {expected_auth}"
        assert request["body"] == {
            "state": "SUCCESSFUL",
            "key": hashlib.md5(b"acme/widgets#7").hexdigest(),
            "url": "https://ci.example.com/job/acme/job/widgets/7/",
            "name": "acme/widgets #7",
            "description": "",
        }

        assert "to BitBucket is done!" in result.stdout
        assert "http status code: 204" in result.stdout

    def test_start_posts_in_progress(self, bitbucket_server, test_db_path):
        result = run_notify_command(
            "start", server=bitbucket_server, db_path=test_db_path
        )

        assert result.returncode == 0
        assert bitbucket_server.received[0]["body"]["state"] == "INPROGRESS"

    def test_server_error_does_not_fail_the_build(self, bitbucket_server, test_db_path):
        bitbucket_server.status_code = 500

        result = run_notify_command(
            "finish", "--result", "FAILURE",
            server=bitbucket_server, db_path=test_db_path,
        )

        assert result.returncode == 0
        assert len(bitbucket_server.received) == 1
        assert "Failed to send build status to acme/widgets" in result.stdout

    def test_step_fails_on_server_error(self, bitbucket_server, test_db_path):
        bitbucket_server.status_code = 401

        result = run_notify_command(
            "step", "--build-state", "FAILED",
            server=bitbucket_server, db_path=test_db_path,
        )

        assert result.returncode == 1
        assert "Error:" in result.stderr

    def test_foreign_remote_is_not_notified(self, bitbucket_server, test_db_path):
        result = run_notify_command(
            "finish", "--result", "SUCCESS",
            server=bitbucket_server,
            db_path=test_db_path,
            env={"GIT_URL": "https://github.com/acme/widgets.git"},
        )

        assert result.returncode == 0
        assert bitbucket_server.received == []
        assert "support only repositories hosted in" in result.stdout
