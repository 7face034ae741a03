from django.contrib import admin

from .models import Comment, Post, Tag


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = ('title', 'status', 'author', 'create_time', 'update_time')
    list_filter = ('status', 'create_time')
    search_fields = ('title', 'content', 'tags')
    exclude = ('author',)
    readonly_fields = ('author_name', 'create_time', 'update_time')

    def author_name(self, obj):
        return obj.author if obj.author_id else '-'
    author_name.short_description = 'Author'

    def save_model(self, request, obj, form, change):
        obj.save(actor=request.user)


@admin.register(Tag)
class TagAdmin(admin.ModelAdmin):
    list_display = ('name', 'frequency')
    search_fields = ('name',)
    readonly_fields = ('frequency',)


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ('author', 'post', 'status', 'create_time')
    list_filter = ('status', 'create_time')
    search_fields = ('content', 'author', 'email')
    actions = ['approve_comments']

    def approve_comments(self, request, queryset):
        updated = queryset.pending().update(status=Comment.Status.APPROVED)
        self.message_user(request, f'{updated}개의 댓글을 승인했습니다.')
    approve_comments.short_description = '선택한 댓글 승인'
