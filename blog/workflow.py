import logging

from django.db import DatabaseError, models, transaction
from django.utils import timezone

from .signals import post_pre_save
from .tag_utils import TagFrequencyTracker, normalize_tags
from .validators import POST_VALIDATORS, run_validators

logger = logging.getLogger(__name__)

VETO_MESSAGE = '저장 전 검사에서 저장이 거부되었습니다.'


class PostSaveWorkflow:
    """게시글 저장 파이프라인.

    validate → pre_save → persist → post_save 순서로 실행하며,
    어느 단계든 False를 반환하면 이후 단계는 실행하지 않습니다.
    태그 빈도 갱신(post_save)은 게시글이 기록된 뒤 실행되고, 실패해도 게시글 저장은 유지됩니다.
    갱신에 실패하면 기준 태그(_old_tags)를 그대로 두어 다음 저장에서 누락된 차이를 다시 반영합니다.
    """

    stages = ('validate', 'pre_save', 'persist', 'post_save')

    def __init__(self, tracker=None, validators=POST_VALIDATORS, clock=timezone.now):
        self.tracker = tracker or TagFrequencyTracker()
        self.validators = validators
        self.clock = clock

    def run(self, post, actor=None, **save_kwargs):
        """(saved, errors)를 반환합니다. errors는 {필드: [메시지]} 형태입니다."""
        state = {
            'actor': actor,
            'is_new': post._state.adding,
            'errors': {},
            'save_kwargs': save_kwargs,
        }
        for name in self.stages:
            if getattr(self, name)(post, state) is False:
                logger.info('Post save stopped at %s stage: pk=%s', name, post.pk)
                return False, state['errors']
        return True, {}

    def validate(self, post, state):
        errors = run_validators(post, state['actor'], self.validators)
        if errors:
            logger.debug('Post validation failed: pk=%s errors=%s', post.pk, errors)
            state['errors'] = errors
            return False
        return True

    def pre_save(self, post, state):
        responses = post_pre_save.send(
            sender=type(post), instance=post, actor=state['actor'], created=state['is_new'],
        )
        if any(response is False for _, response in responses):
            state['errors'] = {'__all__': [VETO_MESSAGE]}
            return False

        post.tags = normalize_tags(post.tags)

        if state['is_new']:
            post._old_tags = ''
        elif post._old_tags is None:
            # tags 필드가 지연 로드된 경우 DB에서 직접 기준값을 가져옴
            post._old_tags = (
                type(post)._default_manager.filter(pk=post.pk)
                .values_list('tags', flat=True).first()
            ) or ''

        now = self.clock()
        if state['is_new']:
            post.create_time = post.update_time = now
            if state['actor'] is not None:
                post.author = state['actor']
        else:
            post.update_time = now
        return True

    def persist(self, post, state):
        save_kwargs = dict(state['save_kwargs'])
        update_fields = save_kwargs.get('update_fields')
        if update_fields is not None:
            save_kwargs['update_fields'] = set(update_fields) | {'tags', 'update_time'}
        models.Model.save(post, **save_kwargs)
        return True

    def post_save(self, post, state):
        try:
            with transaction.atomic():
                self.tracker.update_frequency(post._old_tags, post.tags)
        except DatabaseError:
            logger.exception('Tag frequency update failed: post=%s', post.pk)
            return True
        post._old_tags = post.tags
        return True


def save_post(post, actor=None, tracker=None):
    return PostSaveWorkflow(tracker=tracker).run(post, actor)
