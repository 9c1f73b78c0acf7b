"""End-to-end tests for folding content into the JSON data file."""

import json
import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from config_loader import ConfigLoader
from models import SocialLinksError, SourceNotFoundError
from orchestrator import DataSync

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def write(path: Path, text: str = '') -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding='utf-8')
    return path


class DataSyncTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.authors = self.root / 'content' / 'authors'
        self.categories = self.root / 'content' / 'categories'
        self.posts = self.root / 'content' / 'blog'
        self.data_json = self.root / 'data' / 'data.json'
        self.uploads = self.root / 'data' / 'uploads'

        self.authors.mkdir(parents=True)

    def tearDown(self):
        self._tmp.cleanup()

    def config(self, **overrides):
        values = {
            'sources.authors': str(self.authors),
            'sources.categories': str(self.categories),
            'sources.posts': str(self.posts),
            'data.json_path': str(self.data_json),
            'data.uploads_dir': str(self.uploads),
        }
        values.update(overrides)
        return ConfigLoader.build({}, environ={}, overrides=values)

    def run_sync(self, **overrides):
        report = DataSync(self.config(**overrides), now=NOW).run()
        return report, json.loads(self.data_json.read_text(encoding='utf-8'))


class TestAuthorsAndCategories(DataSyncTestCase):
    def test_record_without_name_is_excluded(self):
        write(self.authors / 'jane.md', "---\nname: Jane\n---\n")
        write(self.authors / 'nameless.md', "---\ntitle: Ghost writer\n---\n")

        report, document = self.run_sync()

        self.assertEqual([a['name'] for a in document['authors']], ['Jane'])
        self.assertEqual(report['kinds']['authors']['skipped'], 1)

    def test_missing_avatar_uses_default_image(self):
        write(self.uploads / 'default-image.png', 'default')
        write(self.authors / 'jane.md', "---\nname: Jane\navatar: ./nope.png\n---\n")

        _, document = self.run_sync()

        self.assertEqual(document['authors'][0]['avatar'], 'authors/default-image.png')
        self.assertTrue((self.uploads / 'authors' / 'default-image.png').is_file())

    def test_author_avatar_copied(self):
        write(self.authors / 'jane.jpg', 'jpg')
        write(self.authors / 'jane.md', "---\nname: Jane\navatar: ./jane.jpg\n---\n")

        _, document = self.run_sync()

        self.assertEqual(document['authors'][0]['avatar'], 'authors/jane.jpg')
        self.assertEqual((self.uploads / 'authors' / 'jane.jpg').read_text(), 'jpg')

    def test_missing_authors_source_is_fatal(self):
        with self.assertRaises(SourceNotFoundError):
            DataSync(self.config(**{'sources.authors': str(self.root / 'nowhere')})).run()

        self.assertFalse(self.data_json.exists())

    def test_malformed_social_json_aborts_without_writing(self):
        write(self.data_json, '{"authors": []}')
        write(self.authors / 'jane.md', "---\nname: Jane\nsocial: '{oops'\n---\n")

        with self.assertRaises(SocialLinksError):
            DataSync(self.config()).run()

        self.assertEqual(self.data_json.read_text(encoding='utf-8'), '{"authors": []}')

    def test_missing_optional_sources_leave_collections_unchanged(self):
        write(self.data_json, json.dumps({
            'categories': [{'id': 1, 'name': 'Kept'}],
            'articles': [{'id': 1, 'slug': 'kept'}],
            'homepage': {'title': 'Home'}
        }))
        write(self.authors / 'jane.md', "---\nname: Jane\n---\n")

        report, document = self.run_sync()

        self.assertEqual(document['categories'], [{'id': 1, 'name': 'Kept'}])
        self.assertEqual(document['articles'], [{'id': 1, 'slug': 'kept'}])
        self.assertEqual(document['homepage'], {'title': 'Home'})
        self.assertEqual(len(document['authors']), 1)
        self.assertTrue(report['kinds']['categories']['source_missing'])
        self.assertTrue(report['kinds']['posts']['source_missing'])

    def test_categories_with_featured_image(self):
        write(self.categories / 'eng.png', 'png')
        write(self.categories / 'eng.md', "---\nname: Engineering\nfeaturedImage: eng.png\n---\n")

        _, document = self.run_sync()

        self.assertEqual(document['categories'], [{
            'id': 1,
            'name': 'Engineering',
            'slug': 'eng',
            'featuredImage': 'categories/eng.png'
        }])


    def test_unquoted_date_values_are_written_as_strings(self):
        write(self.categories / 'news.md', "---\nname: News\nsubtitle: 2024-01-01\n---\n")
        write(self.authors / 'jane.md', "---\nname: Jane\ntick: 2023-05-06\n---\n")

        _, document = self.run_sync()

        self.assertEqual(document['categories'][0]['subtitle'], '2024-01-01T00:00:00.000Z')
        self.assertEqual(document['authors'][0]['tick'], '2023-05-06T00:00:00.000Z')


class TestPosts(DataSyncTestCase):
    def setUp(self):
        super().setUp()
        write(self.authors / 'jane.md', "---\nname: Jane\n---\n")
        write(self.categories / 'news.md', "---\nname: News\n---\n")

    def test_articles_sorted_newest_first_with_undated_last(self):
        write(self.posts / 'a.md', "---\ntitle: A\ndate: 2024-03-01\n---\n")
        write(self.posts / 'b.md', "---\ntitle: B\ndate: 2024-02-01\n---\n")
        write(self.posts / 'c.md', "---\ntitle: C\n---\n")

        _, document = self.run_sync()

        self.assertEqual([p['slug'] for p in document['articles']], ['a', 'b', 'c'])
        self.assertEqual([p['id'] for p in document['articles']], [1, 2, 3])
        self.assertEqual(document['articles'][2]['publishedAt'], '2024-06-01T12:00:00.000Z')

    def test_cross_references(self):
        write(self.posts / 'known.md', "---\ntitle: Known\nauthor: jane\ncategories: [news, other]\n---\n")
        write(self.posts / 'ghost.md', "---\ntitle: Ghost\nauthor: ghost\ncategories: [missing]\n---\n")

        _, document = self.run_sync()
        articles = {p['slug']: p for p in document['articles']}

        self.assertEqual(articles['known']['author'], 1)
        self.assertEqual(articles['known']['category'], 1)
        self.assertNotIn('author', articles['ghost'])
        self.assertNotIn('category', articles['ghost'])

    def test_draft_is_excluded(self):
        write(self.posts / 'live.md', "---\ntitle: Live\n---\n")
        write(self.posts / 'draft.md', "---\ntitle: Draft\ndraft: true\n---\n")

        report, document = self.run_sync()

        self.assertEqual([p['slug'] for p in document['articles']], ['live'])
        self.assertEqual(report['kinds']['posts']['skipped'], 1)

    def test_post_images_and_body(self):
        write(self.posts / 'hello' / 'cover.jpg', 'cover')
        write(self.posts / 'hello' / 'chart.png', 'chart')
        write(self.posts / 'hello' / 'index.mdx', (
            "---\n"
            "title: Hello\n"
            "featuredImage: ./cover.jpg\n"
            "date: 2024-01-01\n"
            "---\n"
            "import Chart from '../../components/Chart.astro'\n"
            "\n"
            "<Prose>\n"
            "![chart](./chart.png)\n"
            "</Prose>\n"
        ))

        _, document = self.run_sync()
        article = document['articles'][0]

        self.assertEqual(article['slug'], 'hello')
        self.assertEqual(article['cover'], 'blog/hello-cover.jpg')
        self.assertEqual(article['content'], '![chart](/uploads/blog/hello-1.png)')
        self.assertEqual((self.uploads / 'blog' / 'hello-1.png').read_text(), 'chart')

    def test_rerun_is_idempotent(self):
        write(self.uploads / 'default-image.png', 'default')
        write(self.posts / 'dated.md', "---\ntitle: Dated\ndate: 2024-01-01\nauthor: jane\n---\nBody")
        write(self.posts / 'undated.md', "---\ntitle: Undated\n---\nBody")

        DataSync(self.config(), now=NOW).run()
        first = self.data_json.read_bytes()

        later = datetime(2025, 1, 1, tzinfo=timezone.utc)
        DataSync(self.config(), now=later).run()
        second = self.data_json.read_bytes()

        self.assertEqual(first, second)


if __name__ == '__main__':
    unittest.main()
