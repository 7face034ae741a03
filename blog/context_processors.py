from .models import Comment
from .tag_utils import get_tag_weights


def tag_cloud(request):
    return {
        'tag_cloud': get_tag_weights(),
        'recent_comments': Comment.objects.recent(),
        'current_tag': request.GET.get('tag', '').strip(),
    }
