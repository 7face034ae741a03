import json
from datetime import timedelta

from django.contrib.auth.models import User
from django.core.exceptions import ImproperlyConfigured, ValidationError
from django.db import DatabaseError
from django.test import TestCase, override_settings
from django.utils import timezone

from blog import utils
from blog.models import Comment, Post, Tag
from blog.signals import post_pre_save
from blog.tag_utils import (
    TagFrequencyTracker, get_tag_weights, normalize_tags, string_to_tags, suggest_tags,
)
from blog.validators import run_validators
from blog.workflow import PostSaveWorkflow, save_post


def frequency(name):
    return Tag.objects.filter(name=name).values_list('frequency', flat=True).first()


class FakeClock:
    """호출할 때마다 미리 정한 시각을 차례로 반환합니다."""

    def __init__(self, *times):
        self.times = list(times)

    def __call__(self):
        return self.times.pop(0)


class FailingTracker(TagFrequencyTracker):
    def update_frequency(self, old_tags, new_tags):
        raise DatabaseError('counter table unavailable')


# ──────────────────────────────────────────────
# 단위 테스트: 태그 정규화
# ──────────────────────────────────────────────

class StringToTagsTest(TestCase):
    def test_mixed_delimiters_and_duplicates(self):
        tags = string_to_tags('red, red blue,  blue,green')
        self.assertEqual(set(tags), {'red', 'blue', 'green'})
        self.assertEqual(len(tags), 3)

    def test_first_seen_order(self):
        self.assertEqual(string_to_tags('b a,b c'), ['b', 'a', 'c'])

    def test_empty(self):
        self.assertEqual(string_to_tags(''), [])
        self.assertEqual(string_to_tags(None), [])
        self.assertEqual(string_to_tags(' ,, ,'), [])

    def test_case_preserved(self):
        self.assertEqual(string_to_tags('Red red'), ['Red', 'red'])


class NormalizeTagsTest(TestCase):
    def test_canonical_form(self):
        self.assertEqual(normalize_tags('red, red blue,  blue,green'), 'red, blue, green')

    def test_idempotent(self):
        for raw in ['red, red blue,  blue,green', 'a', '  x ,y,,z  ', '']:
            once = normalize_tags(raw)
            self.assertEqual(normalize_tags(once), once)

    @override_settings(BLOG_TAG_SEPARATOR=' ')
    def test_custom_separator(self):
        self.assertEqual(normalize_tags('a,b, a'), 'a b')

    @override_settings(BLOG_TAG_SEPARATOR=';')
    def test_invalid_separator(self):
        with self.assertRaises(ImproperlyConfigured):
            normalize_tags('a,b')


# ──────────────────────────────────────────────
# 단위 테스트: 태그 빈도
# ──────────────────────────────────────────────

class TagFrequencyTrackerTest(TestCase):
    def setUp(self):
        self.tracker = TagFrequencyTracker()

    def test_add_creates_missing_tags(self):
        self.tracker.add_tags(['a', 'b'])
        self.assertEqual(frequency('a'), 1)
        self.assertEqual(frequency('b'), 1)

    def test_add_increments_existing(self):
        Tag.objects.create(name='a', frequency=4)
        self.tracker.add_tags(['a'])
        self.assertEqual(frequency('a'), 5)

    def test_remove_never_below_zero(self):
        Tag.objects.create(name='x', frequency=1)
        self.tracker.remove_tags(['x'])
        with self.assertLogs('blog.tag_utils', level='WARNING'):
            self.tracker.remove_tags(['x'])
            self.tracker.remove_tags(['x'])
        self.assertEqual(frequency('x'), 0)

    def test_remove_unknown_tag_is_noop(self):
        with self.assertLogs('blog.tag_utils', level='WARNING'):
            updated = self.tracker.remove_tags(['ghost'])
        self.assertEqual(updated, 0)
        self.assertFalse(Tag.objects.filter(name='ghost').exists())

    def test_update_frequency_delta(self):
        Tag.objects.create(name='a', frequency=1)
        Tag.objects.create(name='b', frequency=1)
        added, removed = self.tracker.update_frequency('a, b', 'b, c')
        self.assertEqual(added, ['c'])
        self.assertEqual(removed, ['a'])
        self.assertEqual(frequency('a'), 0)
        self.assertEqual(frequency('b'), 1)
        self.assertEqual(frequency('c'), 1)

    def test_prune_unused(self):
        Tag.objects.create(name='a', frequency=1)
        TagFrequencyTracker(prune_unused=True).remove_tags(['a'])
        self.assertFalse(Tag.objects.filter(name='a').exists())


class TagWeightsTest(TestCase):
    def test_weights_sorted_by_name(self):
        Tag.objects.create(name='zeta', frequency=3)
        Tag.objects.create(name='alpha', frequency=1)
        Tag.objects.create(name='unused', frequency=0)
        weights = get_tag_weights()
        self.assertEqual(list(weights), ['alpha', 'zeta'])
        self.assertEqual(weights['zeta'], 8 + int(16 * 3 / 14))
        self.assertEqual(weights['alpha'], 8 + int(16 * 1 / 14))

    def test_empty(self):
        self.assertEqual(get_tag_weights(), {})

    def test_suggest(self):
        Tag.objects.create(name='python', frequency=5)
        Tag.objects.create(name='pytest', frequency=2)
        Tag.objects.create(name='django', frequency=9)
        self.assertEqual(suggest_tags('py'), ['python', 'pytest'])
        self.assertEqual(suggest_tags(''), [])


# ──────────────────────────────────────────────
# 저장 파이프라인
# ──────────────────────────────────────────────

class PostTestMixin:
    def setUp(self):
        self.user = User.objects.create_user('writer', password='pass')

    def make_post(self, tags='', status=Post.Status.PUBLISHED, title='Hello World'):
        post = Post(title=title, content='본문입니다.', tags=tags, status=status)
        saved, errors = save_post(post, actor=self.user)
        self.assertTrue(saved, errors)
        return post


class PostFrequencyTest(PostTestMixin, TestCase):
    def test_create_increments(self):
        Tag.objects.create(name='a', frequency=2)
        self.make_post(tags='a,b')
        self.assertEqual(frequency('a'), 3)
        self.assertEqual(frequency('b'), 1)

    def test_update_delta(self):
        self.make_post(tags='b')
        post = self.make_post(tags='a,b')
        self.assertEqual(frequency('b'), 2)

        post = Post.objects.get(pk=post.pk)
        post.tags = 'b,c'
        saved, _ = save_post(post, actor=self.user)
        self.assertTrue(saved)
        self.assertEqual(frequency('a'), 0)
        self.assertEqual(frequency('b'), 2)
        self.assertEqual(frequency('c'), 1)

    def test_resave_does_not_double_count(self):
        post = self.make_post(tags='a')
        save_post(post, actor=self.user)
        save_post(post, actor=self.user)
        self.assertEqual(frequency('a'), 1)

    def test_baseline_captured_on_load(self):
        post = self.make_post(tags='a  b,a')
        loaded = Post.objects.get(pk=post.pk)
        self.assertEqual(loaded.tags, 'a, b')
        self.assertEqual(loaded._old_tags, 'a, b')

    def test_deferred_tags_baseline(self):
        post = self.make_post(tags='a, b')
        loaded = Post.objects.defer('tags').get(pk=post.pk)
        self.assertIsNone(loaded._old_tags)
        loaded.tags = 'c'
        saved, _ = save_post(loaded, actor=self.user)
        self.assertTrue(saved)
        self.assertEqual(frequency('a'), 0)
        self.assertEqual(frequency('b'), 0)
        self.assertEqual(frequency('c'), 1)

    def test_delete_releases_tags(self):
        post = self.make_post(tags='a, b')
        post.delete()
        self.assertEqual(frequency('a'), 0)
        self.assertEqual(frequency('b'), 0)

    def test_queryset_delete_releases_tags(self):
        self.make_post(tags='a')
        self.make_post(tags='a, b')
        Post.objects.all().delete()
        self.assertEqual(frequency('a'), 0)
        self.assertEqual(frequency('b'), 0)

    def test_bookkeeping_failure_keeps_post(self):
        post = Post(title='T', content='C', tags='a', status=Post.Status.DRAFT)
        with self.assertLogs('blog.workflow', level='ERROR'):
            saved, errors = PostSaveWorkflow(tracker=FailingTracker()).run(post, self.user)
        self.assertTrue(saved)
        self.assertEqual(errors, {})
        self.assertTrue(Post.objects.filter(pk=post.pk).exists())
        self.assertIsNone(frequency('a'))
        self.assertEqual(post._old_tags, '')

    def test_bookkeeping_retried_after_failure(self):
        post = Post(title='T', content='C', tags='a', status=Post.Status.DRAFT)
        with self.assertLogs('blog.workflow', level='ERROR'):
            PostSaveWorkflow(tracker=FailingTracker()).run(post, self.user)
        saved, _ = save_post(post, actor=self.user)
        self.assertTrue(saved)
        self.assertEqual(frequency('a'), 1)
        self.assertEqual(post._old_tags, 'a')

    def test_refresh_resets_baseline(self):
        post = self.make_post(tags='a')
        first = Post.objects.get(pk=post.pk)
        second = Post.objects.get(pk=post.pk)
        second.tags = 'b'
        save_post(second, actor=self.user)

        first.refresh_from_db()
        self.assertEqual(first._old_tags, 'b')
        saved, _ = save_post(first, actor=self.user)
        self.assertTrue(saved)
        self.assertEqual(frequency('a'), 0)
        self.assertEqual(frequency('b'), 1)

    def test_refresh_other_fields_keeps_baseline(self):
        post = self.make_post(tags='a')
        post.tags = 'z'
        post.refresh_from_db(fields=['title'])
        self.assertEqual(post._old_tags, 'a')

    def test_delete_releases_stored_tags(self):
        post = self.make_post(tags='a')
        loaded = Post.objects.get(pk=post.pk)
        loaded.tags = 'z'
        loaded.delete()
        self.assertEqual(frequency('a'), 0)
        self.assertIsNone(frequency('z'))

    def test_delete_with_deferred_tags(self):
        post = self.make_post(tags='a, b')
        Post.objects.defer('tags').get(pk=post.pk).delete()
        self.assertEqual(frequency('a'), 0)
        self.assertEqual(frequency('b'), 0)


class PostLifecycleTest(PostTestMixin, TestCase):
    def test_timestamps_and_author(self):
        t1 = timezone.now()
        t2 = t1 + timedelta(minutes=5)
        other = User.objects.create_user('editor', password='pass')
        workflow = PostSaveWorkflow(clock=FakeClock(t1, t2))

        post = Post(title='T', content='C', status=Post.Status.DRAFT)
        workflow.run(post, self.user)
        self.assertEqual(post.create_time, t1)
        self.assertEqual(post.update_time, t1)
        self.assertEqual(post.author, self.user)

        workflow.run(post, other)
        post = Post.objects.get(pk=post.pk)
        self.assertEqual(post.create_time, t1)
        self.assertEqual(post.update_time, t2)
        self.assertEqual(post.author, self.user)

    def test_tags_normalized_on_save(self):
        post = self.make_post(tags='red, red blue,  blue,green')
        self.assertEqual(Post.objects.get(pk=post.pk).tags, 'red, blue, green')

    def test_invalid_status_rejected(self):
        post = Post(title='T', content='C', status=7)
        saved, errors = save_post(post, actor=self.user)
        self.assertFalse(saved)
        self.assertIn('status', errors)
        self.assertEqual(Post.objects.count(), 0)

    def test_invalid_tags_rejected_before_normalization(self):
        post = Post(title='T', content='C', tags='c++, c#', status=Post.Status.DRAFT)
        saved, errors = save_post(post, actor=self.user)
        self.assertFalse(saved)
        self.assertIn('tags', errors)
        self.assertEqual(post.tags, 'c++, c#')
        self.assertEqual(Tag.objects.count(), 0)

    def test_tag_too_long(self):
        post = Post(title='T', content='C', tags='ok, ' + 'x' * 129, status=Post.Status.DRAFT)
        saved, errors = save_post(post, actor=self.user)
        self.assertFalse(saved)
        self.assertIn('tags', errors)
        self.assertEqual(Post.objects.count(), 0)
        self.assertEqual(Tag.objects.count(), 0)

    def test_tag_at_max_length(self):
        post = self.make_post(tags='x' * 128)
        self.assertEqual(frequency('x' * 128), 1)
        self.assertEqual(post._old_tags, 'x' * 128)

    def test_title_too_long(self):
        post = Post(title='x' * 129, content='C', status=Post.Status.DRAFT)
        saved, errors = save_post(post, actor=self.user)
        self.assertFalse(saved)
        self.assertIn('title', errors)

    def test_required_fields(self):
        post = Post(title='', content='  ', status=None)
        errors = run_validators(post)
        self.assertEqual(set(errors), {'title', 'content', 'status', 'author'})

    def test_author_from_actor_only_for_new_posts(self):
        post = Post(title='T', content='C', status=Post.Status.DRAFT)
        self.assertIn('author', run_validators(post))
        self.assertNotIn('author', run_validators(post, actor=self.user))

    def test_model_save_raises(self):
        post = Post(title='T', content='C', status=9, author=self.user)
        with self.assertRaises(ValidationError) as cm:
            post.save()
        self.assertIn('status', cm.exception.message_dict)
        self.assertEqual(Post.objects.count(), 0)

    def test_objects_create_runs_workflow(self):
        post = Post.objects.create(title='T', content='C', tags='a a b', author=self.user)
        self.assertEqual(post.tags, 'a, b')
        self.assertEqual(post.create_time, post.update_time)
        self.assertEqual(frequency('a'), 1)

    def test_update_fields_includes_bookkeeping_fields(self):
        post = self.make_post(tags='a')
        post.status = Post.Status.ARCHIVED
        post.save(update_fields=['status'])
        post.refresh_from_db()
        self.assertEqual(post.status, Post.Status.ARCHIVED)
        self.assertGreaterEqual(post.update_time, post.create_time)

    def test_pre_save_veto(self):
        def veto(sender, instance, **kwargs):
            return False

        post_pre_save.connect(veto, sender=Post, dispatch_uid='test_veto')
        try:
            post = Post(title='T', content='C', tags='a', status=Post.Status.DRAFT)
            saved, errors = save_post(post, actor=self.user)
        finally:
            post_pre_save.disconnect(sender=Post, dispatch_uid='test_veto')
        self.assertFalse(saved)
        self.assertIn('__all__', errors)
        self.assertEqual(Post.objects.count(), 0)
        self.assertIsNone(frequency('a'))

    def test_absolute_url(self):
        post = self.make_post(title='Hello World')
        self.assertEqual(post.get_absolute_url(), f'/post/{post.pk}/hello-world/')


# ──────────────────────────────────────────────
# 댓글
# ──────────────────────────────────────────────

class AddCommentTest(PostTestMixin, TestCase):
    def _comment(self):
        return Comment(author='guest', email='guest@example.com', content='좋은 글이네요.')

    @override_settings(BLOG_COMMENT_NEEDS_APPROVAL=True)
    def test_pending_when_moderated(self):
        post = self.make_post()
        comment = self._comment()
        saved, errors = post.add_comment(comment)
        self.assertTrue(saved, errors)
        self.assertEqual(comment.status, Comment.Status.PENDING)
        self.assertEqual(comment.post_id, post.pk)
        self.assertEqual(list(post.approved_comments), [])

    @override_settings(BLOG_COMMENT_NEEDS_APPROVAL=False)
    def test_approved_without_moderation(self):
        post = self.make_post()
        comment = self._comment()
        saved, _ = post.add_comment(comment)
        self.assertTrue(saved)
        self.assertEqual(comment.status, Comment.Status.APPROVED)
        self.assertEqual(comment.post_id, post.pk)
        self.assertEqual(list(post.approved_comments), [comment])

    def test_invalid_comment(self):
        post = self.make_post()
        comment = Comment(author='guest', email='not-an-email', content='')
        saved, errors = post.add_comment(comment)
        self.assertFalse(saved)
        self.assertIn('email', errors)
        self.assertIn('content', errors)
        self.assertEqual(Comment.objects.count(), 0)

    def test_approve_and_recent(self):
        post = self.make_post()
        comment = self._comment()
        post.add_comment(comment)
        self.assertEqual(list(Comment.objects.recent()), [])
        comment.approve()
        self.assertEqual(list(Comment.objects.recent()), [comment])

    def test_comment_count(self):
        post = self.make_post()
        Comment.objects.create(post=post, author='a', email='a@example.com', content='x',
                               status=Comment.Status.APPROVED)
        Comment.objects.create(post=post, author='b', email='b@example.com', content='y',
                               status=Comment.Status.PENDING)
        annotated = Post.objects.with_comment_count().get(pk=post.pk)
        self.assertEqual(annotated.comment_count, 1)


# ──────────────────────────────────────────────
# 검색
# ──────────────────────────────────────────────

class SearchTest(PostTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.draft = self.make_post(title='Django tips', tags='python, django', status=Post.Status.DRAFT)
        self.published = self.make_post(title='Pytest intro', tags='py', status=Post.Status.PUBLISHED)
        self.archived = self.make_post(title='Old news', tags='news', status=Post.Status.ARCHIVED)

    def test_partial_match(self):
        qs = Post.objects.filter(utils.build_search_filter({'title': 'django'}))
        self.assertEqual(list(qs), [self.draft])

    def test_empty_values_ignored(self):
        qs = Post.objects.filter(utils.build_search_filter({'title': '', 'status': ''}))
        self.assertEqual(qs.count(), 3)

    def test_comparison_operators(self):
        qs = Post.objects.filter(utils.build_search_filter({'status': '>=2'}))
        self.assertEqual(set(qs), {self.published, self.archived})
        qs = Post.objects.filter(utils.build_search_filter({'status': '<>2'}))
        self.assertEqual(set(qs), {self.draft, self.archived})

    def test_invalid_value(self):
        with self.assertRaises(ValueError):
            utils.build_search_filter({'id': 'abc'})

    def test_search_posts_paginates(self):
        page = utils.search_posts({}, page=1, per_page=2)
        self.assertEqual(len(page.object_list), 2)
        self.assertEqual(page.paginator.count, 3)

    def test_with_tag_exact_token(self):
        self.assertEqual(list(Post.objects.with_tag('py')), [self.published])
        self.assertEqual(list(Post.objects.with_tag('python')), [self.draft])

    def test_visible_to_anonymous(self):
        from django.contrib.auth.models import AnonymousUser
        visible = set(Post.objects.visible_to(AnonymousUser()))
        self.assertEqual(visible, {self.published, self.archived})

    def test_visible_to_author_and_staff(self):
        other = User.objects.create_user('reader', password='pass')
        staff = User.objects.create_user('admin', password='pass', is_staff=True)
        self.assertEqual(set(Post.objects.visible_to(self.user)), {self.draft, self.published, self.archived})
        self.assertEqual(set(Post.objects.visible_to(other)), {self.published, self.archived})
        self.assertEqual(set(Post.objects.visible_to(staff)), {self.draft, self.published, self.archived})


# ──────────────────────────────────────────────
# 뷰 통합 테스트
# ──────────────────────────────────────────────

class PostViewTest(PostTestMixin, TestCase):
    def test_list_shows_published_only(self):
        self.make_post(title='Visible', status=Post.Status.PUBLISHED)
        self.make_post(title='Hidden draft', status=Post.Status.DRAFT)
        resp = self.client.get('/')
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, 'Visible')
        self.assertNotContains(resp, 'Hidden draft')

    def test_list_tag_filter(self):
        self.make_post(title='Tagged', tags='python')
        self.make_post(title='Other', tags='java')
        resp = self.client.get('/?tag=python')
        self.assertContains(resp, 'Tagged')
        self.assertNotContains(resp, '>Other<')

    def test_detail_draft_hidden_from_anonymous(self):
        post = self.make_post(status=Post.Status.DRAFT)
        resp = self.client.get(post.get_absolute_url())
        self.assertEqual(resp.status_code, 404)

    def test_detail_markdown_rendered(self):
        post = Post(title='MD', content='**bold** <script>x</script>', status=Post.Status.PUBLISHED)
        save_post(post, actor=self.user)
        resp = self.client.get(post.get_absolute_url())
        self.assertContains(resp, '<strong>bold</strong>')
        self.assertNotContains(resp, '<script>')

    def test_detail_comment_post(self):
        post = self.make_post()
        resp = self.client.post(post.get_absolute_url(), {
            'author': 'guest', 'email': 'guest@example.com', 'content': '댓글',
        })
        self.assertEqual(resp.status_code, 302)
        comment = Comment.objects.get()
        self.assertEqual(comment.post, post)
        self.assertEqual(comment.status, Comment.Status.PENDING)

    def test_detail_comment_errors(self):
        post = self.make_post()
        resp = self.client.post(post.get_absolute_url(), {'author': '', 'email': 'x', 'content': ''})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(Comment.objects.count(), 0)
        self.assertTrue(resp.context['errors'])

    def test_create_requires_login(self):
        resp = self.client.get('/write/')
        self.assertEqual(resp.status_code, 302)

    def test_create_refused_for_non_staff(self):
        self.client.login(username='writer', password='pass')
        resp = self.client.post('/write/', {
            'title': 'New', 'content': 'Body', 'tags': 'a', 'status': '2',
        })
        self.assertEqual(resp.status_code, 302)
        self.assertFalse(Post.objects.filter(title='New').exists())
        self.assertIsNone(frequency('a'))

    def test_edit_refused_for_non_staff(self):
        post = self.make_post(tags='a')
        User.objects.create_user('intruder', password='pass')
        self.client.login(username='intruder', password='pass')
        resp = self.client.post(f'/write/{post.pk}/', {
            'title': 'Hijacked', 'content': 'Changed', 'tags': 'z', 'status': '2',
        })
        self.assertEqual(resp.status_code, 302)
        post.refresh_from_db()
        self.assertEqual(post.title, 'Hello World')
        self.assertEqual(post.tags, 'a')
        self.assertIsNone(frequency('z'))

    def test_detail_draft_visible_to_author(self):
        post = self.make_post(status=Post.Status.DRAFT)
        self.client.login(username='writer', password='pass')
        resp = self.client.get(post.get_absolute_url())
        self.assertEqual(resp.status_code, 200)
        self.assertNotContains(resp, f'/write/{post.pk}/')

    def test_detail_draft_hidden_from_other_user(self):
        post = self.make_post(status=Post.Status.DRAFT)
        User.objects.create_user('reader', password='pass')
        self.client.login(username='reader', password='pass')
        resp = self.client.get(post.get_absolute_url())
        self.assertEqual(resp.status_code, 404)


class StaffViewTest(PostTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.staff = User.objects.create_user('admin', password='pass', is_staff=True)

    def test_create_post(self):
        self.client.login(username='admin', password='pass')
        resp = self.client.post('/write/', {
            'title': 'New', 'content': 'Body', 'tags': 'a b, a', 'status': '2',
        })
        self.assertEqual(resp.status_code, 302)
        post = Post.objects.get(title='New')
        self.assertEqual(post.author, self.staff)
        self.assertEqual(post.tags, 'a, b')
        self.assertEqual(frequency('a'), 1)

    def test_create_post_invalid(self):
        self.client.login(username='admin', password='pass')
        resp = self.client.post('/write/', {'title': 'New', 'content': 'Body', 'tags': 'a!', 'status': '2'})
        self.assertEqual(resp.status_code, 200)
        self.assertIn('tags', resp.context['errors'])
        self.assertEqual(Post.objects.count(), 0)

    def test_edit_post(self):
        post = self.make_post(tags='a, b')
        self.client.login(username='admin', password='pass')
        resp = self.client.post(f'/write/{post.pk}/', {
            'title': post.title, 'content': 'Changed', 'tags': 'b c', 'status': '2',
        })
        self.assertEqual(resp.status_code, 302)
        self.assertEqual(frequency('a'), 0)
        self.assertEqual(frequency('b'), 1)
        self.assertEqual(frequency('c'), 1)
        post.refresh_from_db()
        self.assertEqual(post.author, self.user)

    def test_detail_shows_edit_link(self):
        post = self.make_post(status=Post.Status.DRAFT)
        self.client.login(username='admin', password='pass')
        resp = self.client.get(post.get_absolute_url())
        self.assertContains(resp, f'/write/{post.pk}/')

    def test_manage_requires_staff(self):
        self.client.login(username='writer', password='pass')
        resp = self.client.get('/manage/')
        self.assertEqual(resp.status_code, 302)

    def test_manage_search(self):
        self.make_post(title='Find me')
        self.make_post(title='Other')
        self.client.login(username='admin', password='pass')
        resp = self.client.get('/manage/?title=find')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([p.title for p in resp.context['page_obj']], ['Find me'])

    def test_manage_bad_filter(self):
        self.client.login(username='admin', password='pass')
        resp = self.client.get('/manage/?id=abc')
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.context['error'])

    def test_delete_post(self):
        post = self.make_post(tags='a')
        self.client.login(username='admin', password='pass')
        resp = self.client.post(f'/manage/{post.pk}/delete/')
        self.assertEqual(resp.status_code, 302)
        self.assertFalse(Post.objects.exists())
        self.assertEqual(frequency('a'), 0)

    def test_delete_get_not_allowed(self):
        post = self.make_post()
        self.client.login(username='admin', password='pass')
        resp = self.client.get(f'/manage/{post.pk}/delete/')
        self.assertEqual(resp.status_code, 405)

    def test_approve_comment(self):
        post = self.make_post()
        comment = Comment(author='guest', email='guest@example.com', content='hi')
        post.add_comment(comment)
        self.client.login(username='admin', password='pass')
        resp = self.client.post(f'/comment/{comment.pk}/approve/')
        self.assertEqual(resp.status_code, 302)
        comment.refresh_from_db()
        self.assertEqual(comment.status, Comment.Status.APPROVED)

    def test_admin_add_sets_author(self):
        User.objects.create_superuser('root', password='pass')
        self.client.login(username='root', password='pass')
        resp = self.client.post('/admin/blog/post/add/', {
            'title': 'From admin', 'content': 'Body', 'tags': 'x y', 'status': '1',
        })
        self.assertEqual(resp.status_code, 302)
        post = Post.objects.get(title='From admin')
        self.assertEqual(post.author.username, 'root')
        self.assertEqual(post.tags, 'x, y')
        self.assertEqual(frequency('x'), 1)


class APITest(PostTestMixin, TestCase):
    def test_post_list(self):
        self.make_post(title='Public', tags='python')
        self.make_post(title='Draft', status=Post.Status.DRAFT)
        resp = self.client.get('/api/posts/')
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual([p['title'] for p in data['posts']], ['Public'])
        self.assertEqual(data['posts'][0]['tags'], ['python'])
        self.assertEqual(data['pagination']['total'], 1)

    def test_post_list_bad_filter(self):
        resp = self.client.get('/api/posts/?author=abc')
        self.assertEqual(resp.status_code, 400)

    def test_post_detail_only_approved_comments(self):
        post = self.make_post()
        Comment.objects.create(post=post, author='a', email='a@example.com', content='shown',
                               status=Comment.Status.APPROVED)
        Comment.objects.create(post=post, author='b', email='b@example.com', content='hidden')
        resp = self.client.get(f'/api/posts/{post.pk}/')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([c['content'] for c in resp.json()['comments']], ['shown'])

    def test_comment_create(self):
        post = self.make_post()
        resp = self.client.post(
            f'/api/posts/{post.pk}/comments/',
            data=json.dumps({'author': 'guest', 'email': 'guest@example.com', 'content': '안녕하세요'}),
            content_type='application/json',
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()['status'], Comment.Status.PENDING)

    def test_comment_create_invalid_json(self):
        post = self.make_post()
        resp = self.client.post(f'/api/posts/{post.pk}/comments/', data='not json',
                                content_type='application/json')
        self.assertEqual(resp.status_code, 400)

    def test_comment_create_validation_errors(self):
        post = self.make_post()
        resp = self.client.post(
            f'/api/posts/{post.pk}/comments/',
            data=json.dumps({'author': 'guest', 'email': 'bad', 'content': 'x'}),
            content_type='application/json',
        )
        self.assertEqual(resp.status_code, 400)
        self.assertIn('email', resp.json()['errors'])

    def test_tag_suggest(self):
        self.make_post(tags='python, pytest')
        resp = self.client.get('/api/tags/suggest/?term=pyth')
        self.assertEqual(resp.json(), {'tags': ['python']})


class MakeSlugTest(TestCase):
    def test_basic(self):
        self.assertEqual(utils.make_slug('Hello World'), 'hello-world')

    def test_korean(self):
        self.assertEqual(utils.make_slug('파이썬 튜토리얼'), '파이썬-튜토리얼')

    def test_empty(self):
        self.assertEqual(utils.make_slug(''), 'untitled')
        self.assertEqual(utils.make_slug('!!!'), 'untitled')
