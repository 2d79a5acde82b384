import json
import unittest

from dailywall.core import sources


class TestResolveEndpoint(unittest.TestCase):

    def test_default_endpoint_when_no_custom_api(self):
        self.assertEqual(
            sources.resolve_endpoint(""),
            "https://www.bing.com/HPImageArchive.aspx?format=js&idx=0&n=1&mkt=en-US",
        )

    def test_whitespace_only_custom_api_uses_default(self):
        self.assertTrue(sources.resolve_endpoint("   ").startswith(sources.BING_BASE_URL))

    def test_region_is_used_for_default_endpoint(self):
        self.assertTrue(sources.resolve_endpoint("", region="de-DE").endswith("mkt=de-DE"))

    def test_custom_api_used_verbatim(self):
        self.assertEqual(sources.resolve_endpoint("https://example.com/api"), "https://example.com/api")

    def test_invalid_custom_api_is_not_checked(self):
        self.assertEqual(sources.resolve_endpoint("not a url"), "not a url")


class TestResolveImageUrl(unittest.TestCase):

    def test_bing_shape(self):
        body = json.dumps({"images": [{"url": "/th?id=abc"}]})
        self.assertEqual(sources.resolve_image_url(body), "https://www.bing.com/th?id=abc")

    def test_bing_shape_only_first_image_counts(self):
        body = json.dumps({"images": [{"url": "/first.jpg"}, {"url": "/second.jpg"}]})
        self.assertEqual(sources.resolve_image_url(body), "https://www.bing.com/first.jpg")

    def test_bing_shape_first_image_broken_does_not_look_further(self):
        body = json.dumps({"images": [{"title": "no url"}, {"url": "/second.jpg"}]})
        self.assertIsNone(sources.resolve_image_url(body))

    def test_custom_shape(self):
        body = json.dumps({"imageUrl": "https://cdn.example.com/pic.jpg"})
        self.assertEqual(sources.resolve_image_url(body), "https://cdn.example.com/pic.jpg")

    def test_empty_images_falls_through_to_custom_shape(self):
        body = json.dumps({"images": [], "imageUrl": "https://cdn.example.com/pic.jpg"})
        self.assertEqual(sources.resolve_image_url(body), "https://cdn.example.com/pic.jpg")

    def test_empty_images_without_image_url_fails(self):
        self.assertIsNone(sources.resolve_image_url(json.dumps({"images": []})))

    def test_bing_shape_wins_over_custom_shape(self):
        body = json.dumps({"images": [{"url": "/a.jpg"}], "imageUrl": "https://cdn.example.com/b.jpg"})
        self.assertEqual(sources.resolve_image_url(body), "https://www.bing.com/a.jpg")

    def test_wrong_types_are_not_applicable(self):
        for payload in ({"images": "nope"}, {"images": [{"url": 42}]}, {"imageUrl": 42},
                        {"images": ["/a.jpg"]}):
            with self.subTest(payload=payload):
                self.assertIsNone(sources.resolve_image_url(json.dumps(payload)))

    def test_relative_image_url_is_rejected(self):
        self.assertIsNone(sources.resolve_image_url(json.dumps({"imageUrl": "/pic.jpg"})))

    def test_non_http_image_url_is_rejected(self):
        self.assertIsNone(sources.resolve_image_url(json.dumps({"imageUrl": "file:///etc/passwd"})))

    def test_malformed_json(self):
        self.assertIsNone(sources.resolve_image_url("<html>not json</html>"))

    def test_json_array_is_not_an_object(self):
        self.assertIsNone(sources.resolve_image_url(json.dumps([{"imageUrl": "https://x.test/a.jpg"}])))

    def test_bytes_body(self):
        body = json.dumps({"imageUrl": "https://cdn.example.com/pic.jpg"}).encode("utf-8")
        self.assertEqual(sources.resolve_image_url(body), "https://cdn.example.com/pic.jpg")

    def test_parsers_tried_in_order(self):
        calls = []

        def never(data):
            calls.append("never")
            return None

        def always(data):
            calls.append("always")
            return "https://x.test/a.jpg"

        result = sources.resolve_image_url("{}", parsers=[("never", never), ("always", always)])
        self.assertEqual(result, "https://x.test/a.jpg")
        self.assertEqual(calls, ["never", "always"])


if __name__ == "__main__":
    unittest.main()
