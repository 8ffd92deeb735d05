from django.conf import settings
from django.db import models


class PageView(models.Model):
    """One storefront page view, anonymous or signed in"""
    page_path = models.CharField(max_length=500)
    page_title = models.CharField(max_length=500, blank=True, default='')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='page_views')
    session_id = models.CharField(max_length=200)
    referrer = models.CharField(max_length=1000, blank=True, default='direct')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.page_path} ({self.session_id})"

    class Meta:
        db_table = 'page_views'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='page_views_created_2d81b4_idx'),
            models.Index(fields=['page_path'], name='page_views_page_pa_6c0e3f_idx'),
        ]
