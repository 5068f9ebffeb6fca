from django.contrib import admin

from .models import Collection

# ==================== ADMIN CLASSES ====================

@admin.register(Collection)
class CollectionAdmin(admin.ModelAdmin):
    list_display = ('name', 'record_count', 'updated_at')
    search_fields = ('name',)
    readonly_fields = ('updated_at',)
    actions = ['clear_records']

    def record_count(self, obj):
        return len(obj.records) if isinstance(obj.records, list) else 0
    record_count.short_description = 'Records'

    def clear_records(self, request, queryset):
        count = queryset.update(records=[])
        self.message_user(request, f"{count} collections cleared")
    clear_records.short_description = "Clear records of selected collections"
