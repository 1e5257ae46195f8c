import json
import os
import shutil
import tempfile
import unittest

import requests

from firmware_executor.redfish_firmware.errors import AuthError, LocalIOError, UploadError
from firmware_executor.redfish_firmware.models import UpdateRequest
from firmware_executor.redfish_firmware.upload import UploadSession
from firmware_executor.tests.fakes import HOST, PUSH_URI, FakeResponse, FakeSessionManager, make_adapter


class TrackingOpener:
    """open() replacement that remembers every handle it returned."""

    def __init__(self, fail_paths=()):
        self.fail_paths = set(fail_paths)
        self.handles = []

    def __call__(self, path, mode):
        if path in self.fail_paths:
            raise PermissionError(13, "Permission denied", path)
        handle = open(path, mode)
        self.handles.append(handle)
        return handle


class UploadSessionTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.image_path = os.path.join(self.tmpdir, "bios_2.0.bin")
        self.sig_path = os.path.join(self.tmpdir, "bios_2.0.sig")
        with open(self.image_path, "wb") as f:
            f.write(b"\x7fFIRMWARE-IMAGE")
        with open(self.sig_path, "wb") as f:
            f.write(b"SIGNATURE")

        self.captured = {}
        self.sm = FakeSessionManager()
        self.sm.add("POST", PUSH_URI, self._accept)
        self.adapter = make_adapter(self.sm)
        self.uploader = UploadSession(self.adapter, HOST)

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def _accept(self, method, url, **kwargs):
        files = kwargs["files"]
        self.captured["headers"] = kwargs["headers"]
        self.captured["parts"] = set(files)
        self.captured["content"] = {
            name: part[1] if isinstance(part[1], str) else part[1].read()
            for name, part in files.items()
        }
        self.captured["filenames"] = {name: part[0] for name, part in files.items()}
        return FakeResponse(202, {"Id": "upload"}, headers={"Location": "/redfish/v1/TaskService/Tasks/7"})

    def _request(self, **overrides):
        fields = {
            "target_name": "BIOS",
            "target_version": "2.0",
            "local_image_path": self.image_path,
        }
        fields.update(overrides)
        return UpdateRequest(**fields)

    def test_parts_without_signature(self):
        result = self.uploader.upload(PUSH_URI, "token-abc", self._request())

        self.assertEqual(self.captured["parts"], {"sessionKey", "parameters", "file"})
        self.assertEqual(self.captured["content"]["sessionKey"], "token-abc")
        self.assertEqual(self.captured["content"]["file"], b"\x7fFIRMWARE-IMAGE")
        self.assertEqual(self.captured["filenames"]["file"], "bios_2.0.bin")
        self.assertEqual(result.status_code, 202)

    def test_parts_with_signature(self):
        self.uploader.upload(PUSH_URI, "token-abc", self._request(local_signature_path=self.sig_path))

        self.assertEqual(self.captured["parts"], {"sessionKey", "parameters", "file", "compsig"})
        self.assertEqual(self.captured["content"]["compsig"], b"SIGNATURE")

    def test_parameters_part_carries_fixed_control_fields(self):
        self.uploader.upload(PUSH_URI, "token-abc", self._request())

        parameters = json.loads(self.captured["content"]["parameters"])
        self.assertEqual(parameters, {"UpdateRepository": True, "UpdateTarget": True, "ETag": "atag", "Section": 0})

    def test_headers_carry_token_and_accept_json(self):
        self.uploader.upload(PUSH_URI, "token-abc", self._request())

        self.assertEqual(self.captured["headers"]["X-Auth-Token"], "token-abc")
        self.assertEqual(self.captured["headers"]["Accept"], "application/json")
        # requests sets the multipart Content-Type with its boundary
        self.assertNotIn("Content-Type", self.captured["headers"])

    def test_recovery_set_flag_is_not_transmitted(self):
        self.uploader.upload(PUSH_URI, "token-abc", self._request(apply_to_recovery_set=True))

        self.assertEqual(self.captured["parts"], {"sessionKey", "parameters", "file"})
        self.assertNotIn("Recovery", self.captured["content"]["parameters"])

    def test_task_reference_from_location_header(self):
        result = self.uploader.upload(PUSH_URI, "token-abc", self._request())

        self.assertEqual(result.task_reference, "/redfish/v1/TaskService/Tasks/7")

    def test_task_reference_from_body(self):
        self.sm.add("POST", PUSH_URI, FakeResponse(202, {"Task": {"@odata.id": "/redfish/v1/TaskService/Tasks/9"}}))

        result = self.uploader.upload(PUSH_URI, "token-abc", self._request())

        self.assertEqual(result.task_reference, "/redfish/v1/TaskService/Tasks/9")

    def test_missing_task_reference_is_empty(self):
        self.sm.add("POST", PUSH_URI, FakeResponse(200, text=""))

        result = self.uploader.upload(PUSH_URI, "token-abc", self._request())

        self.assertEqual(result.task_reference, "")
        self.assertEqual(result.raw_response, {})

    def test_missing_image_fails_before_network(self):
        request = self._request(local_image_path=os.path.join(self.tmpdir, "missing.bin"))

        with self.assertRaises(LocalIOError) as ctx:
            self.uploader.upload(PUSH_URI, "token-abc", request)

        self.assertEqual(ctx.exception.role, "firmware image")
        self.assertEqual(len(self.sm.calls), 0)

    def test_signature_failure_releases_image(self):
        opener = TrackingOpener(fail_paths=[self.sig_path])
        uploader = UploadSession(self.adapter, HOST, opener=opener)

        with self.assertRaises(LocalIOError) as ctx:
            uploader.upload(PUSH_URI, "token-abc", self._request(local_signature_path=self.sig_path))

        self.assertEqual(ctx.exception.path, self.sig_path)
        self.assertEqual(len(opener.handles), 1)
        self.assertTrue(opener.handles[0].closed)
        self.assertEqual(len(self.sm.calls), 0)

    def test_handles_closed_after_success(self):
        opener = TrackingOpener()
        uploader = UploadSession(self.adapter, HOST, opener=opener)

        uploader.upload(PUSH_URI, "token-abc", self._request(local_signature_path=self.sig_path))

        self.assertEqual(len(opener.handles), 2)
        self.assertTrue(all(h.closed for h in opener.handles))

    def test_handles_closed_after_transport_failure(self):
        self.sm.add("POST", PUSH_URI, requests.exceptions.ConnectionError("connection reset"))
        opener = TrackingOpener()
        uploader = UploadSession(self.adapter, HOST, opener=opener)

        with self.assertRaises(UploadError) as ctx:
            uploader.upload(PUSH_URI, "token-abc", self._request())

        self.assertEqual(ctx.exception.error_code, "TRANSPORT_ERROR")
        self.assertTrue(opener.handles[0].closed)

    def test_error_status_raises_upload_error(self):
        self.sm.add("POST", PUSH_URI, FakeResponse(400, {
            "error": {"@Message.ExtendedInfo": [
                {"MessageId": "Update.1.0.UpdateInProgress", "Message": "An update is already in progress."}
            ]}
        }))

        with self.assertRaises(UploadError) as ctx:
            self.uploader.upload(PUSH_URI, "token-abc", self._request())

        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.error_code, "UpdateInProgress")
        self.assertEqual(ctx.exception.uri, PUSH_URI)
        self.assertIn("UpdateInProgress", ctx.exception.response_body)

    def test_empty_token_raises_auth_error(self):
        with self.assertRaises(AuthError):
            self.uploader.upload(PUSH_URI, "", self._request())
        self.assertEqual(len(self.sm.calls), 0)

    def test_missing_push_uri_raises_upload_error(self):
        with self.assertRaises(UploadError) as ctx:
            self.uploader.upload("", "token-abc", self._request())
        self.assertEqual(ctx.exception.error_code, "NO_PUSH_URI")

    def test_absolute_push_uri_is_used_as_is(self):
        absolute = "https://10.1.1.1:8443/push"
        self.sm.add("POST", absolute, self._accept)

        self.uploader.upload(absolute, "token-abc", self._request())

        self.assertEqual(self.sm.calls[-1][1], absolute)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
