import logging
import re

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import transaction
from django.db.models import F

logger = logging.getLogger(__name__)

TAG_SPLIT_RE = re.compile(r'[\s,]+')
TAG_SEPARATOR_RE = re.compile(r'^[\s,]+$')


def get_tag_separator():
    separator = getattr(settings, 'BLOG_TAG_SEPARATOR', ', ')
    if not isinstance(separator, str) or not TAG_SEPARATOR_RE.match(separator):
        raise ImproperlyConfigured(
            'BLOG_TAG_SEPARATOR must contain only commas and whitespace, got %r' % (separator,)
        )
    return separator


def string_to_tags(text):
    """쉼표/공백으로 구분된 태그 문자열을 중복 없는 리스트로 변환합니다. 처음 등장한 순서를 유지합니다."""
    if not text:
        return []
    tags = []
    seen = set()
    for token in TAG_SPLIT_RE.split(str(text)):
        if not token or token in seen:
            continue
        seen.add(token)
        tags.append(token)
    return tags


def tags_to_string(tags):
    return get_tag_separator().join(tags)


def normalize_tags(text):
    """태그 문자열을 정규 형태로 변환합니다. 여러 번 적용해도 결과가 같습니다."""
    return tags_to_string(string_to_tags(text))


class TagFrequencyTracker:
    """태그별로 해당 태그를 가진 게시글 수를 관리합니다.

    카운터는 F() 식으로 DB에서 증감하므로 동시 저장에도 값이 덮어써지지 않습니다.
    """

    def __init__(self, prune_unused=None):
        if prune_unused is None:
            prune_unused = getattr(settings, 'BLOG_TAG_PRUNE_UNUSED', False)
        self.prune_unused = prune_unused

    @property
    def model(self):
        from .models import Tag
        return Tag

    def update_frequency(self, old_tags, new_tags):
        """이전/새 태그 문자열의 차이만큼 빈도를 갱신하고 (added, removed)를 반환합니다."""
        old_list = string_to_tags(old_tags)
        new_list = string_to_tags(new_tags)
        old_set, new_set = set(old_list), set(new_list)
        added = [tag for tag in new_list if tag not in old_set]
        removed = [tag for tag in old_list if tag not in new_set]

        with transaction.atomic():
            self.add_tags(added)
            self.remove_tags(removed)
        return added, removed

    def add_tags(self, names):
        if not names:
            return 0
        for name in names:
            self.model.objects.get_or_create(name=name)
        return self.model.objects.filter(name__in=names).update(frequency=F('frequency') + 1)

    def remove_tags(self, names):
        if not names:
            return 0
        updated = self.model.objects.filter(
            name__in=names, frequency__gt=0,
        ).update(frequency=F('frequency') - 1)
        if updated < len(names):
            # 이미 0이거나 없는 태그는 감소하지 않음
            logger.warning(
                'Tag frequency floor reached for %d of %d tags: %s',
                len(names) - updated, len(names), ', '.join(names),
            )
        if self.prune_unused:
            self.model.objects.filter(name__in=names, frequency__lte=0).delete()
        return updated


def get_tag_weights(limit=None):
    """빈도 상위 태그를 {이름: 가중치} 형태로 이름순 정렬하여 반환합니다."""
    from .models import Tag
    if limit is None:
        limit = getattr(settings, 'BLOG_TAG_CLOUD_COUNT', 20)
    tags = list(Tag.objects.filter(frequency__gt=0).order_by('-frequency', 'name')[:limit])
    total = sum(tag.frequency for tag in tags)
    if total == 0:
        return {}
    weights = {tag.name: 8 + int(16 * tag.frequency / (total + 10)) for tag in tags}
    return dict(sorted(weights.items()))


def suggest_tags(keyword, limit=20):
    """키워드를 포함하는 태그 이름을 빈도 내림차순으로 반환합니다."""
    from .models import Tag
    keyword = (keyword or '').strip()
    if not keyword:
        return []
    return list(
        Tag.objects.filter(name__icontains=keyword, frequency__gt=0)
        .order_by('-frequency', 'name')
        .values_list('name', flat=True)[:limit]
    )
