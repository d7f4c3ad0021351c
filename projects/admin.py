from django.contrib import admin
from .models import Project


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ('name', 'chairman', 'teacher', 'active', 'finished', 'published', 'like_count', 'created_at')
    list_filter = ('active', 'finished', 'published')
    search_fields = ('name', 'topic', 'chairman__username', 'teacher__username')
    raw_id_fields = ('chairman', 'teacher')
    filter_horizontal = ('members',)
    readonly_fields = ('like_count', 'bookmark_count', 'comment_count', 'version', 'created_at', 'updated_at')
