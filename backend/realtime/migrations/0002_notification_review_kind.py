from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('realtime', '0001_initial'),
    ]

    operations = [
        migrations.AlterField(
            model_name='notification',
            name='kind',
            field=models.CharField(choices=[('system', 'System'), ('move_completed', 'Move Completed'), ('review', 'Review')], default='system', max_length=20),
        ),
    ]
