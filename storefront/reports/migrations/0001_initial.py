import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='PageView',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('page_path', models.CharField(max_length=500)),
                ('page_title', models.CharField(blank=True, default='', max_length=500)),
                ('session_id', models.CharField(max_length=200)),
                ('referrer', models.CharField(blank=True, default='direct', max_length=1000)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='page_views', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'page_views',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['-created_at'], name='page_views_created_2d81b4_idx'), models.Index(fields=['page_path'], name='page_views_page_pa_6c0e3f_idx')],
            },
        ),
    ]
