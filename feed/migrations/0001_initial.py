from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Collection',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(help_text='Collection name (users, posts, comments, messages)', max_length=64, unique=True)),
                ('records', models.JSONField(blank=True, default=list, help_text='Ordered list of records in storage order')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Last save timestamp')),
            ],
            options={
                'ordering': ['name'],
            },
        ),
    ]
