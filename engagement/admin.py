from django.contrib import admin
from .models import Like, Bookmark, Comment


@admin.register(Like)
class LikeAdmin(admin.ModelAdmin):
    list_display = ('project', 'user', 'created_at')
    raw_id_fields = ('project', 'user')


@admin.register(Bookmark)
class BookmarkAdmin(admin.ModelAdmin):
    list_display = ('project', 'user', 'created_at')
    raw_id_fields = ('project', 'user')


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ('project', 'user', 'content', 'created_at')
    search_fields = ('content',)
    raw_id_fields = ('project', 'user')
