import logging

import django.dispatch
from django.db import DatabaseError
from django.db.models.signals import post_delete, pre_delete
from django.dispatch import receiver

from .models import Post
from .tag_utils import TagFrequencyTracker

logger = logging.getLogger(__name__)

post_pre_save = django.dispatch.Signal()
"""
게시글이 DB에 기록되기 직전에 전송됩니다.

:param class sender: 게시글 모델 클래스
:param Post instance: 저장하려는 게시글
:param actor: 저장을 요청한 사용자 (없으면 None)
:param bool created: 새 글이면 True

수신자 중 하나라도 False를 반환하면 저장하지 않습니다.
"""


@receiver(pre_delete, sender=Post)
def capture_stored_tags(sender, instance, **kwargs):
    """삭제 직전에 DB에 기록된 태그를 보관합니다. 메모리상의 수정은 무시합니다."""
    if instance._old_tags is not None:
        instance._stored_tags = instance._old_tags
        return
    instance._stored_tags = (
        sender._default_manager.filter(pk=instance.pk)
        .values_list('tags', flat=True)
        .first()
    ) or ''


@receiver(post_delete, sender=Post)
def release_post_tags(sender, instance, **kwargs):
    """삭제된 글의 태그 빈도를 감소시킵니다."""
    tags = getattr(instance, '_stored_tags', '')
    if not tags:
        return
    try:
        TagFrequencyTracker().update_frequency(tags, '')
    except DatabaseError:
        logger.exception('Tag frequency release failed: post=%s', instance.pk)
