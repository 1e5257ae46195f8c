import json
import os
import shutil
import tempfile
import unittest
from unittest import mock

import requests
from requests.adapters import HTTPAdapter

from firmware_executor.redfish_firmware.models import UpdateRequest
from firmware_executor.redfish_firmware.upload import UploadSession
from firmware_executor.session_manager import SessionManager
from firmware_executor.tests.fakes import HOST, PUSH_URI, make_adapter

URL = f"https://{HOST}/redfish/v1/"


def _accepted(request, **kwargs):
    response = requests.Response()
    response.status_code = 202
    response._content = b"{}"
    response.headers["Location"] = "/redfish/v1/TaskService/Tasks/7"
    response.headers["Content-Type"] = "application/json"
    response.request = request
    response.url = request.url
    return response


class SessionManagerRequestTests(unittest.TestCase):
    def setUp(self):
        patcher = mock.patch.object(requests.Session, "request", autospec=True)
        self.request = patcher.start()
        self.addCleanup(patcher.stop)

    def _sent(self):
        args, kwargs = self.request.call_args
        return args[0], args[1], args[2], kwargs

    def test_default_timeout_applied(self):
        sm = SessionManager(timeout=(3, 20))

        sm.make_request("GET", URL, HOST)

        _, method, url, kwargs = self._sent()
        self.assertEqual((method, url), ("GET", URL))
        self.assertEqual(kwargs["timeout"], (3, 20))

    def test_explicit_timeout_kept(self):
        sm = SessionManager(timeout=(3, 20))

        sm.make_request("POST", URL, HOST, timeout=(5, 300))

        self.assertEqual(self._sent()[3]["timeout"], (5, 300))

    def test_accept_json_added(self):
        sm = SessionManager()

        sm.make_request("GET", URL, HOST, headers={"X-Auth-Token": "tok"})

        headers = self._sent()[3]["headers"]
        self.assertEqual(headers["Accept"], "application/json")
        self.assertEqual(headers["X-Auth-Token"], "tok")

    def test_caller_accept_kept(self):
        sm = SessionManager()

        sm.make_request("GET", URL, HOST, headers={"Accept": "text/plain"})

        self.assertEqual(self._sent()[3]["headers"]["Accept"], "text/plain")

    def test_session_reused_per_host(self):
        sm = SessionManager()

        sm.make_request("GET", URL, HOST)
        first = self._sent()[0]
        sm.make_request("GET", URL, HOST)
        second = self._sent()[0]
        sm.make_request("GET", "https://other.test/redfish/v1/", "other.test")
        other = self._sent()[0]

        self.assertIs(first, second)
        self.assertIsNot(first, other)
        self.assertIsNot(sm._get_lock(HOST), sm._get_lock("other.test"))

    def test_verify_ssl_applied_to_session(self):
        self.assertFalse(SessionManager(verify_ssl=False).get_session(HOST).verify)
        self.assertTrue(SessionManager(verify_ssl=True).get_session(HOST).verify)

    def test_close_all_sessions(self):
        sm = SessionManager()
        sm.get_session(HOST)
        sm.get_session("other.test")

        sm.close_all_sessions()

        self.assertEqual(sm.sessions, {})


class MultipartWireTests(unittest.TestCase):
    """Runs an upload through SessionManager and requests down to the transport adapter."""

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.image_path = os.path.join(self.tmpdir, "bios.bin")
        self.signature_path = os.path.join(self.tmpdir, "bios.sig")
        with open(self.image_path, "wb") as f:
            f.write(b"IMAGE-BYTES")
        with open(self.signature_path, "wb") as f:
            f.write(b"SIG-BYTES")

        patcher = mock.patch.object(HTTPAdapter, "send", autospec=True)
        self.send = patcher.start()
        self.send.side_effect = lambda adapter, request, **kwargs: _accepted(request, **kwargs)
        self.addCleanup(patcher.stop)

        self.sm = SessionManager(verify_ssl=False)
        self.addCleanup(self.sm.close_all_sessions)
        self.uploader = UploadSession(make_adapter(self.sm), HOST, timeout=(5, 300))

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def _upload(self, signature=""):
        request = UpdateRequest(
            target_name="BIOS",
            target_version="2.0",
            local_image_path=self.image_path,
            local_signature_path=signature,
        )
        return self.uploader.upload(PUSH_URI, "tok-1", request)

    def _prepared(self):
        args, kwargs = self.send.call_args
        return args[1], kwargs

    def test_multipart_body_and_headers(self):
        result = self._upload(signature=self.signature_path)

        prepared, kwargs = self._prepared()
        body = prepared.body
        self.assertEqual(prepared.method, "POST")
        self.assertEqual(prepared.url, f"https://{HOST}{PUSH_URI}")
        self.assertTrue(prepared.headers["Content-Type"].startswith("multipart/form-data; boundary="))
        self.assertEqual(prepared.headers["X-Auth-Token"], "tok-1")
        self.assertEqual(prepared.headers["Accept"], "application/json")
        self.assertIn(b'name="sessionKey"\r\n\r\ntok-1', body)
        self.assertIn(b'name="parameters"', body)
        self.assertIn(json.dumps({"UpdateRepository": True, "UpdateTarget": True, "ETag": "atag", "Section": 0}).encode(), body)
        self.assertIn(b'name="file"; filename="bios.bin"', body)
        self.assertIn(b"IMAGE-BYTES", body)
        self.assertIn(b'name="compsig"; filename="bios.sig"', body)
        self.assertIn(b"SIG-BYTES", body)
        self.assertEqual(kwargs["timeout"], (5, 300))
        self.assertEqual(result.task_reference, "/redfish/v1/TaskService/Tasks/7")

    def test_signature_part_omitted_without_signature(self):
        self._upload()

        prepared, _ = self._prepared()
        self.assertNotIn(b'name="compsig"', prepared.body)
        self.assertIn(b'name="file"; filename="bios.bin"', prepared.body)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
