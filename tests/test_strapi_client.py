"""Tests for the Strapi REST client and upload materializer."""

import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock

import requests

from materializers import StrapiClient, StrapiRequestError, UploadMaterializer
from models import ContentRecord, EntityKind, ResourceReference


def make_response(status_code=200, payload=None, text=None):
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    body = text if text is not None else (json.dumps(payload) if payload is not None else '')
    response.text = body
    response.content = body.encode('utf-8')
    response.json.return_value = payload
    return response


class StrapiTestCase(unittest.TestCase):
    def setUp(self):
        self.session = MagicMock(spec=requests.Session)
        self.session.headers = {}
        self.client = StrapiClient('https://cms.example.com/', 'secret', timeout=5, session=self.session)


class TestStrapiClient(StrapiTestCase):
    def test_auth_headers(self):
        self.assertEqual(self.session.headers['Authorization'], 'Bearer secret')
        self.assertEqual(self.client.base_url, 'https://cms.example.com')

    def test_create_author_posts_json_payload(self):
        self.session.request.return_value = make_response(201, {'data': {'documentId': 'abc', 'id': 7}})
        payload = {'data': {'name': 'Jane'}}

        result = self.client.create_author(payload)

        kwargs = self.session.request.call_args.kwargs
        self.assertEqual(kwargs['method'], 'POST')
        self.assertEqual(kwargs['url'], 'https://cms.example.com/api/authors')
        self.assertEqual(kwargs['json'], payload)
        self.assertEqual(kwargs['timeout'], 5)
        self.assertEqual(StrapiClient.document_id(result), 'abc')

    def test_error_status_raises_with_body(self):
        self.session.request.return_value = make_response(400, text='{"error":"bad"}')

        with self.assertRaises(StrapiRequestError) as ctx:
            self.client.create_author({'data': {}})

        self.assertEqual(ctx.exception.status_code, 400)
        self.assertIn('Create author failed: 400', str(ctx.exception))
        self.assertIn('bad', str(ctx.exception))

    def test_empty_response_body(self):
        self.session.request.return_value = make_response(204)

        self.assertEqual(self.client.create_author({'data': {}}), {})

    def test_transport_errors_propagate(self):
        self.session.request.side_effect = requests.ConnectionError('refused')

        with self.assertRaises(requests.ConnectionError):
            self.client.create_author({'data': {}})


class TestUpload(StrapiTestCase):
    def setUp(self):
        super().setUp()
        self._tmp = tempfile.TemporaryDirectory()
        self.image = Path(self._tmp.name) / 'jane.png'
        self.image.write_bytes(b'png')

    def tearDown(self):
        self._tmp.cleanup()

    def test_upload_sends_multipart_with_file_info(self):
        self.session.request.return_value = make_response(200, [{'id': 12, 'name': 'Jane'}])

        file_id = self.client.upload_file(self.image, 'Jane Doe')

        self.assertEqual(file_id, 12)
        kwargs = self.session.request.call_args.kwargs
        self.assertEqual(kwargs['url'], 'https://cms.example.com/api/upload')
        self.assertEqual(json.loads(kwargs['data']['fileInfo']),
                         {'name': 'Jane Doe', 'alternativeText': 'Jane Doe'})
        self.assertEqual(kwargs['files']['files'][0], 'jane.png')

    def test_extract_file_id_shapes(self):
        self.assertEqual(StrapiClient.extract_file_id([{'id': 1}]), 1)
        self.assertEqual(StrapiClient.extract_file_id({'files': [{'id': 2}]}), 2)
        self.assertEqual(StrapiClient.extract_file_id({'documentId': 'doc'}), 'doc')

    def test_response_without_id_raises(self):
        for result in ([], {}, [{'name': 'x'}], 'nope'):
            with self.assertRaises(StrapiRequestError):
                StrapiClient.extract_file_id(result)

    def test_upload_materializer(self):
        self.session.request.return_value = make_response(200, [{'id': 5}])
        avatar = ResourceReference('avatar', self.image)
        with_avatar = ContentRecord(EntityKind.AUTHORS, 'jane', {'name': 'Jane'}, resources={'avatar': avatar})
        without_avatar = ContentRecord(EntityKind.AUTHORS, 'joe', {'name': 'Joe'})

        materializer = UploadMaterializer(self.client)

        self.assertEqual(materializer.author_avatar(with_avatar), 5)
        self.assertIsNone(materializer.author_avatar(without_avatar))
        self.assertEqual(self.session.request.call_count, 1)
        self.assertEqual(materializer.uploaded, 1)


class TestDocumentId(unittest.TestCase):
    def test_shapes(self):
        self.assertEqual(StrapiClient.document_id({'data': {'documentId': 'a'}}), 'a')
        self.assertEqual(StrapiClient.document_id({'documentId': 'b'}), 'b')
        self.assertEqual(StrapiClient.document_id({'data': {'id': 3}}), 3)
        self.assertIsNone(StrapiClient.document_id({}))
        self.assertIsNone(StrapiClient.document_id(None))


if __name__ == '__main__':
    unittest.main()
