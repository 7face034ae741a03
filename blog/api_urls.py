from django.urls import path
from . import api

app_name = 'api'

urlpatterns = [
    path('posts/', api.api_post_list, name='post_list'),
    path('posts/<int:pk>/', api.api_post_detail, name='post_detail'),
    path('posts/<int:pk>/comments/', api.api_comment_create, name='comment_create'),
    path('tags/suggest/', api.api_tag_suggest, name='tag_suggest'),
]
