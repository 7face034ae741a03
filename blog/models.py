import re

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Count, Q
from django.urls import reverse
from django.utils import timezone


class PostQuerySet(models.QuerySet):
    def published(self):
        return self.filter(status=Post.Status.PUBLISHED)

    def visible_to(self, user):
        """공개/보관 글은 누구에게나, 임시 글은 작성자와 스태프에게만 보입니다."""
        public = Q(status__in=[Post.Status.PUBLISHED, Post.Status.ARCHIVED])
        if user is None or not user.is_authenticated:
            return self.filter(public)
        if user.is_staff:
            return self
        return self.filter(public | Q(author=user))

    def with_tag(self, tag):
        tag = (tag or '').strip()
        if not tag:
            return self
        from .tag_utils import string_to_tags
        tokens = string_to_tags(tag)
        if not tokens:
            return self
        return self.filter(tags__regex=r'(^|[\s,])%s([\s,]|$)' % re.escape(tokens[0]))

    def with_comment_count(self):
        return self.annotate(
            comment_count=Count('comments', filter=Q(comments__status=Comment.Status.APPROVED)),
        )


class Post(models.Model):
    class Status(models.IntegerChoices):
        DRAFT = 1, 'Draft'
        PUBLISHED = 2, 'Published'
        ARCHIVED = 3, 'Archived'

    title = models.CharField(max_length=128)
    content = models.TextField()
    tags = models.TextField(blank=True, default='')
    status = models.PositiveSmallIntegerField(choices=Status.choices, default=Status.DRAFT)
    create_time = models.DateTimeField(null=True, blank=True, editable=False)
    update_time = models.DateTimeField(null=True, blank=True, editable=False)
    author = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='posts')

    objects = PostQuerySet.as_manager()

    # 로드 직후의 태그 문자열. None이면 아직 알 수 없음
    _old_tags = None

    class Meta:
        ordering = ['-update_time']

    def __str__(self):
        return self.title

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        if 'tags' in field_names:
            instance._old_tags = instance.tags
        return instance

    def refresh_from_db(self, using=None, fields=None, **kwargs):
        super().refresh_from_db(using=using, fields=fields, **kwargs)
        # 지연 로딩된 tags는 기준값을 건드리지 않음
        if (fields is None or 'tags' in fields) and 'tags' in self.__dict__:
            self._old_tags = self.tags

    def save(self, *, actor=None, **kwargs):
        from .workflow import PostSaveWorkflow
        saved, errors = PostSaveWorkflow().run(self, actor, **kwargs)
        if not saved:
            raise ValidationError(errors)

    def clean(self):
        from .validators import FIELD_VALIDATORS, run_validators
        errors = run_validators(self, validators=FIELD_VALIDATORS)
        if errors:
            raise ValidationError(errors)

    def get_absolute_url(self):
        from .utils import make_slug
        return reverse('blog:post_detail', kwargs={'pk': self.pk, 'slug': make_slug(self.title)})

    @property
    def tag_list(self):
        from .tag_utils import string_to_tags
        return string_to_tags(self.tags)

    @property
    def approved_comments(self):
        return self.comments.filter(status=Comment.Status.APPROVED).order_by('-create_time')

    @property
    def content_html(self):
        from .utils import render_markdown
        return render_markdown(self.content)

    def add_comment(self, comment):
        """댓글을 이 글에 연결하고 저장 결과 (saved, errors)를 그대로 반환합니다."""
        if getattr(settings, 'BLOG_COMMENT_NEEDS_APPROVAL', True):
            comment.status = Comment.Status.PENDING
        else:
            comment.status = Comment.Status.APPROVED
        comment.post = self
        return save_comment(comment)


class Tag(models.Model):
    name = models.CharField(max_length=128, unique=True)
    frequency = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['-frequency', 'name']

    def __str__(self):
        return self.name


class CommentQuerySet(models.QuerySet):
    def approved(self):
        return self.filter(status=Comment.Status.APPROVED)

    def pending(self):
        return self.filter(status=Comment.Status.PENDING)

    def recent(self, limit=None):
        if limit is None:
            limit = getattr(settings, 'BLOG_RECENT_COMMENT_COUNT', 10)
        return self.approved().select_related('post').order_by('-create_time')[:limit]


class Comment(models.Model):
    class Status(models.IntegerChoices):
        PENDING = 1, 'Pending approval'
        APPROVED = 2, 'Approved'

    post = models.ForeignKey(Post, on_delete=models.CASCADE, related_name='comments')
    content = models.TextField()
    status = models.PositiveSmallIntegerField(choices=Status.choices, default=Status.PENDING)
    create_time = models.DateTimeField(default=timezone.now)
    author = models.CharField(max_length=128)
    email = models.EmailField(max_length=128)
    url = models.URLField(max_length=128, blank=True, default='')

    objects = CommentQuerySet.as_manager()

    class Meta:
        ordering = ['create_time']

    def __str__(self):
        return f'{self.author} on {self.post}'

    def approve(self):
        self.status = self.Status.APPROVED
        self.save(update_fields=['status'])


def save_comment(comment):
    """모델 검증 후 댓글을 저장합니다. (saved, errors)를 반환합니다."""
    try:
        comment.full_clean()
    except ValidationError as e:
        return False, e.message_dict
    comment.save()
    return True, {}
