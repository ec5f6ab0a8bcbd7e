from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='UserPattern',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('user_id', models.CharField(max_length=255, unique=True, verbose_name='user id')),
                ('preferred_times', models.JSONField(default=dict, help_text="Completion counts keyed by hour bucket, e.g. '9-10'.", verbose_name='preferred times')),
                ('category_efficiency', models.JSONField(default=dict, help_text='Per-category {completed, total, rate}.', verbose_name='category efficiency')),
                ('complexity_preference', models.JSONField(default=dict, help_text='Per complexity-decile {completed, total, rate}.', verbose_name='complexity preference')),
                ('weights', models.JSONField(default=dict, help_text='urgency, impact, complexity, context, time_awareness; sums to 1.', verbose_name='adaptive weights')),
                ('last_updated', models.DateTimeField(auto_now=True, verbose_name='last updated')),
            ],
            options={
                'verbose_name': 'User Pattern',
                'verbose_name_plural': 'User Patterns',
                'ordering': ['-last_updated'],
            },
        ),
        migrations.CreateModel(
            name='FeedbackEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('user_id', models.CharField(db_index=True, max_length=255, verbose_name='user id')),
                ('task_id', models.CharField(max_length=255, verbose_name='task id')),
                ('action', models.CharField(choices=[('completed', 'Completed'), ('postponed', 'Postponed'), ('reordered', 'Reordered'), ('deleted', 'Deleted'), ('liked', 'Liked'), ('disliked', 'Disliked')], max_length=20, verbose_name='action')),
                ('context', models.JSONField(blank=True, default=dict, verbose_name='context')),
                ('timestamp', models.DateTimeField(verbose_name='timestamp')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
            ],
            options={
                'verbose_name': 'Feedback Event',
                'verbose_name_plural': 'Feedback Events',
                'ordering': ['-timestamp'],
            },
        ),
    ]
