from django.contrib import admin
from .models import Logbook


@admin.register(Logbook)
class LogbookAdmin(admin.ModelAdmin):
    list_display = ('project', 'date', 'time', 'valid', 'created_at')
    list_filter = ('valid',)
    search_fields = ('activity', 'project__name')
    raw_id_fields = ('project',)
