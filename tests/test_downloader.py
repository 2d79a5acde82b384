import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import requests

from dailywall.core import downloader
from dailywall.core.errors import ContentError, FilesystemError, TransportError
from testutils import FakeWeb, image_response, make_response

IMAGE_URL = "https://cdn.example.com/pic.jpg"


class TestFetchMetadata(unittest.TestCase):

    @patch("dailywall.core.downloader.requests.get")
    def test_returns_body_text(self, fake_get):
        fake_get.return_value = make_response(b'{"imageUrl": "x"}')
        self.assertEqual(downloader.fetch_metadata("https://example.com/api"), '{"imageUrl": "x"}')
        self.assertEqual(fake_get.call_args.kwargs["timeout"], 10)

    @patch("dailywall.core.downloader.requests.get")
    def test_connection_error(self, fake_get):
        fake_get.side_effect = requests.exceptions.ConnectionError("down")
        with self.assertRaises(TransportError):
            downloader.fetch_metadata("https://example.com/api")

    @patch("dailywall.core.downloader.requests.get")
    def test_timeout(self, fake_get):
        fake_get.side_effect = requests.exceptions.Timeout()
        with self.assertRaises(TransportError):
            downloader.fetch_metadata("https://example.com/api", timeout=1)

    @patch("dailywall.core.downloader.requests.get")
    def test_http_error_status(self, fake_get):
        fake_get.return_value = make_response(b"oops", status=500, url="https://example.com/api")
        with self.assertRaises(TransportError):
            downloader.fetch_metadata("https://example.com/api")

    @patch("dailywall.core.downloader.requests.get")
    def test_empty_body(self, fake_get):
        fake_get.return_value = make_response(b"")
        with self.assertRaises(TransportError):
            downloader.fetch_metadata("https://example.com/api")


class TestSuggestedFilename(unittest.TestCase):

    def test_content_disposition(self):
        response = image_response(url=IMAGE_URL, headers={"Content-Disposition": 'attachment; filename="today.png"'})
        self.assertEqual(downloader.suggested_filename(response), "today.png")

    def test_content_disposition_path_is_stripped(self):
        response = image_response(url=IMAGE_URL, headers={"Content-Disposition": 'inline; filename="../../evil.jpg"'})
        self.assertEqual(downloader.suggested_filename(response), "evil.jpg")

    def test_url_basename(self):
        self.assertEqual(downloader.suggested_filename(image_response(url=IMAGE_URL)), "pic.jpg")

    def test_url_basename_is_unquoted(self):
        response = image_response(url="https://cdn.example.com/my%20pic.jpg")
        self.assertEqual(downloader.suggested_filename(response), "my pic.jpg")

    def test_fallback_when_url_has_no_extension(self):
        response = image_response(url="https://www.bing.com/th?id=OHR.Foo_1920x1080.jpg")
        self.assertEqual(downloader.suggested_filename(response), downloader.FALLBACK_FILENAME)

    def test_fallback_without_url(self):
        self.assertEqual(downloader.suggested_filename(image_response(url="")), downloader.FALLBACK_FILENAME)


class TestDownload(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.tmp = Path(self._tmp.name)
        self.staging_dir = self.tmp / "staging"
        self.scratch_dir = self.tmp / "scratch"

    def test_download_to_staging_and_persist(self):
        web = FakeWeb({IMAGE_URL: image_response(b"jpeg-bytes", url=IMAGE_URL)})
        with patch("dailywall.core.downloader.requests.get", web):
            staging, filename = downloader.download_to_staging(IMAGE_URL, self.staging_dir)
        self.assertEqual(filename, "pic.jpg")
        self.assertEqual(staging.parent, self.staging_dir)
        self.assertEqual(staging.read_bytes(), b"jpeg-bytes")

        final = downloader.persist_download(staging, self.scratch_dir, filename)
        self.assertEqual(final, self.scratch_dir / "pic.jpg")
        self.assertEqual(final.read_bytes(), b"jpeg-bytes")
        self.assertFalse(staging.exists())

    def test_content_type_prefix_is_case_insensitive(self):
        web = FakeWeb({IMAGE_URL: image_response(url=IMAGE_URL, content_type="Image/PNG")})
        with patch("dailywall.core.downloader.requests.get", web):
            staging, _ = downloader.download_to_staging(IMAGE_URL, self.staging_dir)
        self.assertTrue(staging.is_file())

    def test_non_image_content_type_writes_nothing(self):
        web = FakeWeb({IMAGE_URL: image_response(b"<html></html>", url=IMAGE_URL, content_type="text/html")})
        with patch("dailywall.core.downloader.requests.get", web):
            with self.assertRaises(ContentError):
                downloader.download_to_staging(IMAGE_URL, self.staging_dir)
        self.assertFalse(self.staging_dir.exists())

    def test_missing_content_type(self):
        web = FakeWeb({IMAGE_URL: make_response(b"data", url=IMAGE_URL)})
        with patch("dailywall.core.downloader.requests.get", web):
            with self.assertRaises(ContentError):
                downloader.download_to_staging(IMAGE_URL, self.staging_dir)

    def test_empty_image_leaves_no_staging_file(self):
        web = FakeWeb({IMAGE_URL: image_response(b"", url=IMAGE_URL)})
        with patch("dailywall.core.downloader.requests.get", web):
            with self.assertRaises(TransportError):
                downloader.download_to_staging(IMAGE_URL, self.staging_dir)
        self.assertEqual(list(self.staging_dir.iterdir()), [])

    def test_network_error(self):
        web = FakeWeb({IMAGE_URL: requests.exceptions.ConnectionError("reset")})
        with patch("dailywall.core.downloader.requests.get", web):
            with self.assertRaises(TransportError):
                downloader.download_to_staging(IMAGE_URL, self.staging_dir)

    def test_http_error_status(self):
        web = FakeWeb({IMAGE_URL: make_response(b"", status=404, url=IMAGE_URL)})
        with patch("dailywall.core.downloader.requests.get", web):
            with self.assertRaises(TransportError):
                downloader.download_to_staging(IMAGE_URL, self.staging_dir)

    def broken_stream(self, error):
        response = image_response(url=IMAGE_URL)

        def iter_content(chunk_size=1, decode_unicode=False):
            yield b"first-chunk"
            raise error

        response.iter_content = iter_content
        return FakeWeb({IMAGE_URL: response})

    def test_dropped_connection_leaves_no_staging_file(self):
        web = self.broken_stream(requests.exceptions.ChunkedEncodingError("connection reset"))
        with patch("dailywall.core.downloader.requests.get", web):
            with self.assertRaises(TransportError):
                downloader.download_to_staging(IMAGE_URL, self.staging_dir)
        self.assertEqual(list(self.staging_dir.iterdir()), [])

    def test_unexpected_stream_error_leaves_no_staging_file(self):
        web = self.broken_stream(RuntimeError("decoder blew up"))
        with patch("dailywall.core.downloader.requests.get", web):
            with self.assertRaises(RuntimeError):
                downloader.download_to_staging(IMAGE_URL, self.staging_dir)
        self.assertEqual(list(self.staging_dir.iterdir()), [])

    def test_persist_failure_removes_staging_file(self):
        staging = self.tmp / "x.part"
        staging.write_bytes(b"data")
        with patch("dailywall.core.downloader.shutil.move", side_effect=OSError("disk full")):
            with self.assertRaises(FilesystemError):
                downloader.persist_download(staging, self.scratch_dir, "pic.jpg")
        self.assertFalse(staging.exists())
        self.assertFalse((self.scratch_dir / "pic.jpg").exists())


if __name__ == "__main__":
    unittest.main()
