import re

TITLE_MAX_LENGTH = 128
TAG_NAME_MAX_LENGTH = 128
TAGS_RE = re.compile(r'^[\w\s,]+$')

REQUIRED_MESSAGE = '필수 항목입니다.'


def check_required(post, actor=None):
    for field in ('title', 'content', 'status'):
        value = getattr(post, field)
        if value is None or (isinstance(value, str) and not value.strip()):
            yield field, REQUIRED_MESSAGE


def check_author(post, actor=None):
    """새 글은 저장하는 사용자가 작성자가 되므로 actor가 있으면 통과합니다."""
    if post.author_id is None and not (post._state.adding and actor is not None):
        yield 'author', REQUIRED_MESSAGE


def check_title_length(post, actor=None):
    if post.title and len(post.title) > TITLE_MAX_LENGTH:
        yield 'title', f'제목은 {TITLE_MAX_LENGTH}자 이하로 입력해주세요.'


def check_status(post, actor=None):
    from .models import Post
    if post.status is not None and post.status not in Post.Status.values:
        yield 'status', '허용되지 않는 상태값입니다.'


def check_tags(post, actor=None):
    if post.tags and not TAGS_RE.match(post.tags):
        yield 'tags', '태그에는 문자, 숫자, 밑줄, 공백, 쉼표만 사용할 수 있습니다.'
        return
    from .tag_utils import string_to_tags
    if any(len(tag) > TAG_NAME_MAX_LENGTH for tag in string_to_tags(post.tags)):
        yield 'tags', f'태그는 {TAG_NAME_MAX_LENGTH}자 이하로 입력해주세요.'


# 순서대로 실행되며 각 함수는 (필드, 메시지)를 0개 이상 생성합니다.
POST_VALIDATORS = (
    check_required,
    check_author,
    check_title_length,
    check_status,
    check_tags,
)

# 작성자는 폼 입력이 아니므로 모델 clean()에서는 제외
FIELD_VALIDATORS = tuple(v for v in POST_VALIDATORS if v is not check_author)


def run_validators(post, actor=None, validators=POST_VALIDATORS):
    errors = {}
    for validator in validators:
        for field, message in validator(post, actor):
            errors.setdefault(field, []).append(message)
    return errors
