"""Tests for mapping content records into destination shapes."""

import unittest
from datetime import date, datetime, timezone
from pathlib import Path

from mappers import BodyTransformer, map_author_for_data, map_author_for_strapi, map_category, map_post
from mappers.record_mapper import (
    first_category,
    format_timestamp,
    has_social_links,
    parse_timestamp,
    sort_posts
)
from models import ContentRecord, EntityKind


def author(slug='jane', **fields):
    fields.setdefault('name', 'Jane')
    fields.setdefault('bio', '')
    fields.setdefault('isTeam', False)
    return ContentRecord(EntityKind.AUTHORS, slug, fields)


def post(slug, body='', **fields):
    fields.setdefault('title', slug.title())
    return ContentRecord(EntityKind.POSTS, slug, fields, body=body, source_path=Path(f'{slug}.md'))


NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class TestAuthorMapping(unittest.TestCase):
    def test_minimal_author_has_only_required_fields(self):
        mapped = map_author_for_data(author(), 1).to_dict()

        self.assertEqual(mapped, {'id': 1, 'name': 'Jane', 'bio': '', 'isTeam': False})

    def test_optional_fields_and_avatar(self):
        mapped = map_author_for_data(
            author(title='CTO', team='founders', tick='Ships', bgColor='#fff', isTeam=True),
            3,
            avatar='authors/jane.png'
        ).to_dict()

        self.assertEqual(mapped['id'], 3)
        self.assertEqual(mapped['title'], 'CTO')
        self.assertEqual(mapped['team'], 'founders')
        self.assertEqual(mapped['tick'], 'Ships')
        self.assertEqual(mapped['bgColor'], '#fff')
        self.assertIs(mapped['isTeam'], True)
        self.assertEqual(mapped['avatar'], 'authors/jane.png')
        self.assertNotIn('surprising', mapped)

    def test_social_only_when_a_network_is_set(self):
        with_links = map_author_for_data(author(social={'github': 'jane'}), 1).to_dict()
        without_links = map_author_for_data(author(social={'github': '', 'mastodon': 'x'}), 1).to_dict()

        self.assertEqual(with_links['social'], {'github': 'jane'})
        self.assertNotIn('social', without_links)

    def test_strapi_payload(self):
        payload = map_author_for_strapi(author(title='CTO', team=None), avatar_id=42)

        self.assertEqual(payload, {
            'data': {'name': 'Jane', 'bio': '', 'title': 'CTO', 'isTeam': False, 'avatar': 42}
        })

    def test_strapi_payload_without_avatar(self):
        payload = map_author_for_strapi(author())

        self.assertNotIn('avatar', payload['data'])

    def test_has_social_links(self):
        self.assertTrue(has_social_links({'linkedin': 'in/jane'}))
        self.assertFalse(has_social_links({}))
        self.assertFalse(has_social_links('github'))


class TestCategoryMapping(unittest.TestCase):
    def test_category(self):
        record = ContentRecord(EntityKind.CATEGORIES, 'news', {'name': 'News', 'subtitle': 'Latest'})

        mapped = map_category(record, 2, featured_image='categories/news.png').to_dict()

        self.assertEqual(mapped, {
            'id': 2,
            'name': 'News',
            'slug': 'news',
            'subtitle': 'Latest',
            'featuredImage': 'categories/news.png'
        })


class TestPostMapping(unittest.TestCase):
    def setUp(self):
        self.transformer = BodyTransformer(wrapper_tags=('Prose',))

    def test_full_post(self):
        record = post(
            'hello',
            body="import X from './x'\n\n<Prose>\nHi ![a](./a.png)\n</Prose>",
            description='Greeting',
            date=date(2024, 1, 2),
            meta={'title': 'Meta', 'og': {'title': 'OG', 'image': './og.png'}}
        )

        mapped = map_post(
            record, 1, self.transformer,
            author_id=1, category_id=2,
            cover='blog/hello-cover.jpg', og_image='blog/hello-og.png',
            image_paths={'./a.png': 'blog/hello-1.png'}, now=NOW
        ).to_dict()

        self.assertEqual(mapped['id'], 1)
        self.assertEqual(mapped['title'], 'Hello')
        self.assertEqual(mapped['slug'], 'hello')
        self.assertEqual(mapped['description'], 'Greeting')
        self.assertEqual(mapped['content'], 'Hi ![a](/uploads/blog/hello-1.png)')
        self.assertEqual(mapped['cover'], 'blog/hello-cover.jpg')
        self.assertEqual(mapped['author'], 1)
        self.assertEqual(mapped['category'], 2)
        self.assertEqual(mapped['publishedAt'], '2024-01-02T00:00:00.000Z')
        self.assertEqual(mapped['seo'], {
            'metaTitle': 'Meta',
            'ogTitle': 'OG',
            'ogImage': 'blog/hello-og.png'
        })

    def test_unresolved_references_are_omitted(self):
        mapped = map_post(post('lonely'), 1, self.transformer, now=NOW).to_dict()

        self.assertNotIn('author', mapped)
        self.assertNotIn('category', mapped)
        self.assertNotIn('cover', mapped)
        self.assertNotIn('seo', mapped)

    def test_first_published_at_wins_over_date(self):
        record = post('x', firstPublishedAt='2023-05-01T10:00:00Z', date='2024-01-01')

        mapped = map_post(record, 1, self.transformer, now=NOW).to_dict()

        self.assertEqual(mapped['publishedAt'], '2023-05-01T10:00:00.000Z')

    def test_undated_post_uses_fallback_then_now(self):
        record = post('undated')

        with_fallback = map_post(
            record, 1, self.transformer,
            fallback_published_at='2022-03-04T05:06:07.000Z', now=NOW
        ).to_dict()
        without_fallback = map_post(record, 1, self.transformer, now=NOW).to_dict()

        self.assertEqual(with_fallback['publishedAt'], '2022-03-04T05:06:07.000Z')
        self.assertEqual(without_fallback['publishedAt'], '2024-06-01T12:00:00.000Z')

    def test_remote_og_image_passes_through(self):
        record = post('x', meta={'og': {'image': 'https://cdn.example.com/og.png'}})

        mapped = map_post(record, 1, self.transformer, now=NOW).to_dict()

        self.assertEqual(mapped['seo'], {'ogImage': 'https://cdn.example.com/og.png'})


class TestPostOrdering(unittest.TestCase):
    def test_newest_first_with_undated_last(self):
        records = [
            post('undated'),
            post('old', date='2023-01-01'),
            post('new', date='2024-01-01'),
        ]

        self.assertEqual([r.slug for r in sort_posts(records)], ['new', 'old', 'undated'])

    def test_ties_break_on_slug(self):
        records = [
            post('b', date='2024-01-01'),
            post('a', date='2024-01-01'),
            post('z'),
            post('y'),
        ]

        self.assertEqual([r.slug for r in sort_posts(records)], ['a', 'b', 'y', 'z'])


class TestHelpers(unittest.TestCase):
    def test_first_category(self):
        self.assertEqual(first_category(post('x', categories=['eng', 'news'])), 'eng')
        self.assertEqual(first_category(post('x', categories='news')), 'news')
        self.assertIsNone(first_category(post('x', categories=[])))
        self.assertIsNone(first_category(post('x')))

    def test_parse_timestamp(self):
        self.assertEqual(parse_timestamp(date(2024, 1, 2)), datetime(2024, 1, 2, tzinfo=timezone.utc))
        self.assertEqual(
            parse_timestamp('2024-01-02T03:00:00+02:00'),
            datetime(2024, 1, 2, 1, 0, tzinfo=timezone.utc)
        )
        self.assertIsNone(parse_timestamp('not a date'))
        self.assertIsNone(parse_timestamp(''))
        self.assertIsNone(parse_timestamp(12))

    def test_partial_dates_do_not_borrow_from_today(self):
        self.assertEqual(parse_timestamp('March 2024'), datetime(2024, 3, 1, tzinfo=timezone.utc))

    def test_format_timestamp_millis(self):
        value = datetime(2024, 1, 2, 3, 4, 5, 678901, tzinfo=timezone.utc)

        self.assertEqual(format_timestamp(value), '2024-01-02T03:04:05.678Z')


if __name__ == '__main__':
    unittest.main()
