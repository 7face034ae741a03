from django.conf import settings
from django.contrib import messages
from django.contrib.admin.views.decorators import staff_member_required
from django.core.paginator import Paginator
from django.shortcuts import get_object_or_404, redirect, render
from django.views.decorators.cache import never_cache
from django.views.decorators.http import require_POST

from .models import Comment, Post
from .utils import search_posts
from .workflow import save_post


def _parse_status(raw_status):
    try:
        return int(raw_status)
    except (TypeError, ValueError):
        return None


def post_list(request):
    tag = request.GET.get('tag', '').strip()
    posts = (
        Post.objects.published()
        .with_tag(tag)
        .with_comment_count()
        .select_related('author')
        .order_by('-update_time')
    )

    per_page = getattr(settings, 'BLOG_POSTS_PER_PAGE', 10)
    paginator = Paginator(posts, per_page)
    page_obj = paginator.get_page(request.GET.get('page', 1))

    return render(request, 'blog/post_list.html', {
        'page_obj': page_obj,
        'current_tag': tag,
    })


def post_detail(request, pk, slug=None):
    post = get_object_or_404(Post.objects.visible_to(request.user), pk=pk)
    comment = Comment()
    errors = {}

    if request.method == 'POST':
        comment.author = request.POST.get('author', '').strip()
        comment.email = request.POST.get('email', '').strip()
        comment.url = request.POST.get('url', '').strip()
        comment.content = request.POST.get('content', '').strip()
        saved, errors = post.add_comment(comment)
        if saved:
            if comment.status == Comment.Status.PENDING:
                messages.info(request, '댓글이 등록되었습니다. 승인 후 표시됩니다.')
            return redirect(post.get_absolute_url())

    return render(request, 'blog/post_detail.html', {
        'post': post,
        'comments': post.approved_comments,
        'comment': comment,
        'errors': errors,
    })


def _editor_context(post, errors, edit_mode=False):
    return {
        'post': post,
        'errors': errors,
        'status_choices': Post.Status.choices,
        'edit_mode': edit_mode,
    }


def _fill_post_from_request(post, request):
    post.title = request.POST.get('title', '').strip()
    post.content = request.POST.get('content', '').strip()
    post.tags = request.POST.get('tags', '').strip()
    post.status = _parse_status(request.POST.get('status'))


@never_cache
@staff_member_required(login_url='/')
def post_create(request):
    post = Post()
    if request.method == 'POST':
        _fill_post_from_request(post, request)
        saved, errors = save_post(post, actor=request.user)
        if saved:
            return redirect(post.get_absolute_url())
        return render(request, 'blog/post_editor.html', _editor_context(post, errors))

    return render(request, 'blog/post_editor.html', _editor_context(post, {}))


@never_cache
@staff_member_required(login_url='/')
def post_edit(request, pk):
    post = get_object_or_404(Post, pk=pk)

    if request.method == 'POST':
        _fill_post_from_request(post, request)
        saved, errors = save_post(post, actor=request.user)
        if saved:
            return redirect(post.get_absolute_url())
        return render(request, 'blog/post_editor.html', _editor_context(post, errors, edit_mode=True))

    return render(request, 'blog/post_editor.html', _editor_context(post, {}, edit_mode=True))


@never_cache
@staff_member_required(login_url='/')
def post_manage(request):
    try:
        page_obj = search_posts(request.GET, page=request.GET.get('page', 1))
        error = None
    except ValueError as e:
        page_obj = search_posts({}, page=1)
        error = str(e)

    return render(request, 'blog/post_manage.html', {
        'page_obj': page_obj,
        'filters': request.GET,
        'status_choices': Post.Status.choices,
        'pending_comment_count': Comment.objects.pending().count(),
        'error': error,
    })


@never_cache
@staff_member_required(login_url='/')
@require_POST
def post_delete(request, pk):
    post = get_object_or_404(Post, pk=pk)
    post.delete()
    return redirect('blog:post_manage')


@staff_member_required(login_url='/')
@require_POST
def comment_approve(request, pk):
    comment = get_object_or_404(Comment, pk=pk)
    comment.approve()
    return redirect(comment.post.get_absolute_url())


@staff_member_required(login_url='/')
@require_POST
def comment_delete(request, pk):
    comment = get_object_or_404(Comment, pk=pk)
    post = comment.post
    comment.delete()
    return redirect(post.get_absolute_url())
