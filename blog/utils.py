import re
from datetime import datetime

import bleach
import markdown

from django.conf import settings
from django.core.paginator import Paginator
from django.db.models import Q
from django.utils import timezone


ALLOWED_TAGS = [
    'p', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6',
    'a', 'img', 'ul', 'ol', 'li',
    'code', 'pre', 'blockquote',
    'table', 'thead', 'tbody', 'tr', 'th', 'td',
    'em', 'strong', 'br', 'hr', 'div', 'span',
]
ALLOWED_ATTRIBUTES = {
    'a': ['href', 'title'],
    'img': ['src', 'alt', 'title'],
    'code': ['class'],
}
ALLOWED_PROTOCOLS = ['http', 'https', 'mailto']


def _sanitize_html(html):
    """Markdown 렌더링 결과에서 허용된 태그/속성만 남기고 제거합니다."""
    return bleach.clean(
        html,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        protocols=ALLOWED_PROTOCOLS,
    )


def render_markdown(text):
    """마크다운 텍스트를 sanitized HTML로 변환합니다."""
    html = markdown.markdown(text or '', extensions=['fenced_code', 'tables'])
    return _sanitize_html(html)


def make_slug(title):
    """제목에서 slug를 생성합니다."""
    slug = (title or '').lower().strip()
    slug = re.sub(r'[^\w\s가-힣-]', '', slug)
    slug = re.sub(r'[\s_]+', '-', slug)
    slug = slug.strip('-')
    return slug or 'untitled'


# ---------------------------------------------------------------------------
# 검색 조건
# ---------------------------------------------------------------------------

PARTIAL_FIELDS = ('title', 'content', 'tags')
EXACT_FIELDS = {
    'id': 'id',
    'status': 'status',
    'author': 'author_id',
    'create_time': 'create_time',
    'update_time': 'update_time',
}
DATETIME_FIELDS = {'create_time', 'update_time'}

_COMPARISON_RE = re.compile(r'^\s*(<>|>=|<=|>|<|=)?\s*(.+?)\s*$')
_OPERATOR_LOOKUPS = {
    '>=': 'gte',
    '<=': 'lte',
    '>': 'gt',
    '<': 'lt',
    '=': 'exact',
    '': 'exact',
}


def _parse_datetime(raw):
    """'YYYY-MM-DD' 또는 'YYYY-MM-DD HH:MM:SS' 문자열을 aware datetime으로 변환합니다."""
    for fmt in ('%Y-%m-%d %H:%M:%S', '%Y-%m-%d'):
        try:
            dt = datetime.strptime(raw, fmt)
        except ValueError:
            continue
        if timezone.is_naive(dt):
            dt = timezone.make_aware(dt)
        return dt
    raise ValueError(f'날짜 형식이 올바르지 않습니다: {raw}')


def _compare(field, raw_value):
    """'>=3', '<>2', '5' 같은 비교식을 Q로 변환합니다."""
    match = _COMPARISON_RE.match(str(raw_value))
    if not match:
        return None
    operator, value = match.group(1) or '', match.group(2)
    if field in DATETIME_FIELDS:
        value = _parse_datetime(value)
    else:
        value = int(value)
    if operator == '<>':
        return ~Q(**{field: value})
    return Q(**{f'{field}__{_OPERATOR_LOOKUPS[operator]}': value})


def build_search_filter(params):
    """검색 파라미터(dict)로 게시글 필터 Q를 만듭니다. 빈 값은 무시합니다.

    title/content/tags는 부분 일치, 나머지는 비교 연산자를 지원하는 일치 검색입니다.
    값을 해석할 수 없으면 ValueError를 발생시킵니다.
    """
    condition = Q()
    for name in PARTIAL_FIELDS:
        value = str(params.get(name) or '').strip()
        if value:
            condition &= Q(**{f'{name}__icontains': value})
    for name, field in EXACT_FIELDS.items():
        value = params.get(name)
        if value is None or str(value).strip() == '':
            continue
        q = _compare(field, value)
        if q is not None:
            condition &= q
    return condition


def search_posts(params, page=1, per_page=None, queryset=None):
    """검색 조건을 적용한 게시글을 페이지 단위로 반환합니다."""
    from .models import Post
    if per_page is None:
        per_page = getattr(settings, 'BLOG_POSTS_PER_PAGE', 10)
    if queryset is None:
        queryset = Post.objects.all()
    posts = queryset.filter(build_search_filter(params)).order_by('-update_time', '-id')
    paginator = Paginator(posts, per_page)
    return paginator.get_page(page)
