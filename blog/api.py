import json

from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from .models import Comment, Post
from .tag_utils import suggest_tags
from .utils import search_posts


def _post_summary(post):
    return {
        'id': post.pk,
        'title': post.title,
        'url': post.get_absolute_url(),
        'tags': post.tag_list,
        'status': post.status,
        'create_time': post.create_time.isoformat() if post.create_time else None,
        'update_time': post.update_time.isoformat() if post.update_time else None,
    }


@require_GET
def api_post_list(request):
    params = {
        name: request.GET.get(name, '')
        for name in ('title', 'content', 'tags', 'create_time', 'update_time', 'author')
    }
    page = request.GET.get('page', '1')
    per_page = request.GET.get('per_page', '20')

    try:
        page = max(1, int(page))
        per_page = min(100, max(1, int(per_page)))
    except (ValueError, TypeError):
        page, per_page = 1, 20

    try:
        page_obj = search_posts(params, page=page, per_page=per_page, queryset=Post.objects.published())
    except ValueError as e:
        return JsonResponse({'error': str(e)}, status=400)

    return JsonResponse({
        'posts': [_post_summary(p) for p in page_obj],
        'pagination': {
            'page': page_obj.number,
            'per_page': per_page,
            'total': page_obj.paginator.count,
            'total_pages': page_obj.paginator.num_pages,
        },
    })


@require_GET
def api_post_detail(request, pk):
    post = get_object_or_404(Post.objects.visible_to(request.user), pk=pk)
    data = _post_summary(post)
    data['content'] = post.content
    data['comments'] = [
        {
            'id': c.pk,
            'author': c.author,
            'content': c.content,
            'create_time': c.create_time.isoformat(),
        }
        for c in post.approved_comments
    ]
    return JsonResponse(data)


@csrf_exempt
@require_POST
def api_comment_create(request, pk):
    post = get_object_or_404(Post.objects.visible_to(request.user), pk=pk)

    try:
        data = json.loads(request.body)
    except (json.JSONDecodeError, ValueError):
        return JsonResponse({'error': 'JSON 형식이 올바르지 않습니다.'}, status=400)
    if not isinstance(data, dict):
        return JsonResponse({'error': 'JSON 객체를 보내주세요.'}, status=400)

    comment = Comment(
        author=str(data.get('author', '')).strip(),
        email=str(data.get('email', '')).strip(),
        url=str(data.get('url', '')).strip(),
        content=str(data.get('content', '')).strip(),
    )
    saved, errors = post.add_comment(comment)
    if not saved:
        return JsonResponse({'errors': errors}, status=400)

    return JsonResponse({
        'id': comment.pk,
        'author': comment.author,
        'content': comment.content,
        'status': comment.status,
        'create_time': comment.create_time.isoformat(),
    }, status=201)


@require_GET
def api_tag_suggest(request):
    keyword = request.GET.get('term', '').strip()
    return JsonResponse({'tags': suggest_tags(keyword)})
