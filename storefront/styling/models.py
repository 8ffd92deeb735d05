from django.db import models


class Styling(models.Model):
    """Lookbook entry showing the shoes in an outfit"""
    title = models.CharField(max_length=200, blank=True, default='')
    description = models.TextField(blank=True, default='')
    image_url = models.CharField(max_length=1000)
    color = models.CharField(max_length=100, blank=True, default='')
    size = models.CharField(max_length=50, blank=True, default='')
    height = models.CharField(max_length=50, blank=True, default='')
    slug = models.SlugField(max_length=200, unique=True)
    display_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.title or self.slug

    class Meta:
        db_table = 'styling'
        ordering = ['display_order', '-created_at']


class StylingImage(models.Model):
    styling = models.ForeignKey(Styling, on_delete=models.CASCADE, related_name='styling_images')
    url = models.CharField(max_length=1000)
    display_order = models.PositiveSmallIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.styling} #{self.display_order}"

    class Meta:
        db_table = 'styling_images'
        ordering = ['display_order']
