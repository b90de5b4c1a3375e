from django.db import migrations


def seed(apps, schema_editor):
    from core.permissions import seed_default_features
    seed_default_features(apps.get_model('core', 'FeaturePermission'))


class Migration(migrations.Migration):

    dependencies = [
        ('core', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(seed, migrations.RunPython.noop),
    ]
