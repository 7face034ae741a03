from django.urls import include, path, re_path
from . import views

app_name = 'blog'

# 한글 slug를 허용하는 패턴
_SLUG = r'(?P<slug>[-\w]+)'

urlpatterns = [
    path('', views.post_list, name='post_list'),
    path('write/', views.post_create, name='post_create'),
    path('manage/', views.post_manage, name='post_manage'),
    path('write/<int:pk>/', views.post_edit, name='post_edit'),
    path('manage/<int:pk>/delete/', views.post_delete, name='post_delete'),
    path('post/<int:pk>/', views.post_detail, name='post_detail_short'),
    re_path(rf'post/(?P<pk>\d+)/{_SLUG}/$', views.post_detail, name='post_detail'),
    path('comment/<int:pk>/approve/', views.comment_approve, name='comment_approve'),
    path('comment/<int:pk>/delete/', views.comment_delete, name='comment_delete'),
    # API
    path('api/', include('blog.api_urls')),
]
