from unittest import mock

from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import override_settings
from django.urls import reverse

from core.models import AuditLog, FeaturePermission, User
from core.permissions import FeatureKeys
from core.tests.fixtures import ApiTestCase
from core.utils.error_messages import DUPLICATE_MOBILE_MESSAGE


class UserCreateViewTests(ApiTestCase):

    def payload(self, **overrides):
        data = {'name': 'Ravi Kumar', 'mobile': '9123456780', 'password': 'secret1', 'role': 'agent'}
        data.update(overrides)
        return data

    def test_manager_creates_agent_reporting_to_them(self):
        self.login_as(self.manager)
        response = self.post_json(reverse('core:user_create'), self.payload())
        self.assertEqual(response.status_code, 201, response.content)

        user = User.objects.get(mobile='9123456780')
        self.assertEqual(user.user_role, 'agent')
        self.assertEqual(user.reports_to, self.manager)
        self.assertTrue(user.check_password('secret1'))

        entry = AuditLog.objects.get(action='admin_create_user')
        self.assertEqual(entry.table_name, 'auth.users')
        self.assertEqual(entry.user, self.manager)

    def test_manager_cannot_create_manager(self):
        self.login_as(self.manager)
        response = self.post_json(reverse('core:user_create'), self.payload(role='manager'))
        self.assertEqual(response.status_code, 403)
        self.assertFalse(User.objects.filter(mobile='9123456780').exists())

    def test_admin_creates_manager(self):
        self.login_as(self.admin)
        response = self.post_json(reverse('core:user_create'), self.payload(role='manager', reports_to=str(self.admin.id)))
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['role'], 'manager')
        self.assertEqual(response.json()['reports_to'], str(self.admin.id))

    def test_unknown_role_defaults_to_agent(self):
        self.login_as(self.admin)
        response = self.post_json(reverse('core:user_create'), self.payload(role='supervisor'))
        self.assertEqual(response.json()['role'], 'agent')

    def test_manager_must_ask_for_agent(self):
        self.login_as(self.manager)
        response = self.post_json(reverse('core:user_create'), self.payload(role='supervisor'))
        self.assertEqual(response.status_code, 403)

        payload = self.payload()
        del payload['role']
        self.assertEqual(self.post_json(reverse('core:user_create'), payload).status_code, 403)
        self.assertFalse(User.objects.filter(mobile='9123456780').exists())

    def test_user_create_feature_switched_off(self):
        FeaturePermission.objects.filter(feature_key=FeatureKeys.USER_CREATE).update(manager_access=False)
        self.login_as(self.manager)
        self.assertEqual(self.post_json(reverse('core:user_create'), self.payload()).status_code, 403)
        self.assertFalse(User.objects.filter(mobile='9123456780').exists())

    def test_duplicate_mobile(self):
        self.login_as(self.admin)
        response = self.post_json(reverse('core:user_create'), self.payload(mobile='9000000003'))
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['error'], DUPLICATE_MOBILE_MESSAGE)

    def test_agents_cannot_create_users(self):
        self.login_as(self.agent_one)
        self.assertEqual(self.post_json(reverse('core:user_create'), self.payload()).status_code, 403)

    def test_user_list_scoped(self):
        self.login_as(self.manager)
        body = self.client.get(reverse('core:user_list')).json()
        self.assertEqual(body['count'], 3)

        self.login_as(self.admin)
        body = self.client.get(reverse('core:user_list'), {'role': 'agent'}).json()
        self.assertEqual(body['count'], 3)


class UserUpdateViewTests(ApiTestCase):

    def update(self, user, data):
        return self.post_json(reverse('core:user_update', args=[user.id]), data)

    def test_manager_edits_team_agent(self):
        self.login_as(self.manager)
        response = self.update(self.agent_one, {'name': 'Arun Kumar', 'whatsapp_number': '9000000099'})
        self.assertEqual(response.status_code, 200, response.content)
        self.assertEqual(response.json()['name'], 'Arun Kumar')

        self.agent_one.refresh_from_db()
        self.assertEqual(self.agent_one.name, 'Arun Kumar')
        self.assertEqual(self.agent_one.mobile, '9000000003')
        self.assertEqual(self.agent_one.reports_to, self.manager)

        entry = AuditLog.objects.get(action='user_update', record_id=str(self.agent_one.id))
        self.assertEqual(entry.old_data['name'], 'Arun Agent')
        self.assertEqual(entry.new_data['name'], 'Arun Kumar')

    def test_manager_cannot_promote(self):
        self.login_as(self.manager)
        self.assertEqual(self.update(self.agent_one, {'role': 'manager'}).status_code, 403)
        self.agent_one.refresh_from_db()
        self.assertEqual(self.agent_one.user_role, 'agent')

    def test_manager_cannot_move_agent_to_another_manager(self):
        self.login_as(self.manager)
        response = self.update(self.agent_one, {'reports_to': str(self.admin.id)})
        self.assertEqual(response.status_code, 200)
        self.agent_one.refresh_from_db()
        self.assertEqual(self.agent_one.reports_to, self.manager)

    def test_manager_cannot_edit_outside_team(self):
        self.login_as(self.manager)
        self.assertEqual(self.update(self.other_agent, {'name': 'Someone Else'}).status_code, 403)
        self.assertEqual(self.update(self.admin, {'name': 'Someone Else'}).status_code, 403)

    def test_agents_cannot_edit_users(self):
        self.login_as(self.agent_one)
        self.assertEqual(self.update(self.agent_one, {'name': 'Arun Kumar'}).status_code, 403)

    def test_user_update_feature_switched_off(self):
        FeaturePermission.objects.filter(feature_key=FeatureKeys.USER_UPDATE).update(manager_access=False)
        self.login_as(self.manager)
        self.assertEqual(self.update(self.agent_one, {'name': 'Arun Kumar'}).status_code, 403)

    def test_admin_changes_role_and_manager(self):
        self.login_as(self.admin)
        response = self.update(self.other_agent, {'role': 'manager', 'reports_to': str(self.admin.id)})
        self.assertEqual(response.status_code, 200, response.content)
        self.other_agent.refresh_from_db()
        self.assertEqual(self.other_agent.user_role, 'manager')
        self.assertEqual(self.other_agent.reports_to, self.admin)

    def test_cannot_change_own_role(self):
        self.login_as(self.admin)
        self.assertEqual(self.update(self.admin, {'role': 'agent'}).status_code, 400)

    def test_duplicate_mobile(self):
        self.login_as(self.admin)
        response = self.update(self.agent_one, {'mobile': '9000000004'})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['error'], DUPLICATE_MOBILE_MESSAGE)

    def test_invalid_mobile(self):
        self.login_as(self.admin)
        response = self.update(self.agent_one, {'mobile': '12345'})
        self.assertEqual(response.status_code, 400)
        self.assertIn('mobile', response.json()['errors'])


class ProfilePhotoViewTests(ApiTestCase):

    def upload(self, content=b'\x89PNG\r\n', content_type='image/png'):
        photo = SimpleUploadedFile('me.png', content, content_type=content_type)
        return self.client.post(reverse('core:profile_photo_upload'), {'photo': photo})

    @mock.patch('core.views.api.profile_photo_url', return_value='https://example.com/me.png')
    @mock.patch('cloudinary.uploader.upload')
    def test_upload_own_photo(self, upload, photo_url):
        upload.return_value = {'public_id': f'staff/profile_photos/{self.agent_one.id}'}
        self.login_as(self.agent_one)

        response = self.upload()
        self.assertEqual(response.status_code, 200, response.content)
        self.assertEqual(response.json()['profile_photo_url'], 'https://example.com/me.png')
        self.assertEqual(upload.call_args.kwargs['public_id'], f'staff/profile_photos/{self.agent_one.id}')
        self.assertTrue(AuditLog.objects.filter(action='profile_photo_update',
                                                record_id=str(self.agent_one.id)).exists())

    @mock.patch('cloudinary.uploader.upload')
    def test_rejects_non_images(self, upload):
        self.login_as(self.agent_one)
        response = self.upload(content=b'%PDF-1.4', content_type='application/pdf')
        self.assertEqual(response.status_code, 400)
        self.assertIn('photo', response.json()['errors'])
        upload.assert_not_called()

    @mock.patch('cloudinary.uploader.upload')
    def test_rejects_large_images(self, upload):
        self.login_as(self.agent_one)
        response = self.upload(content=b'0' * (2 * 1024 * 1024 + 1))
        self.assertEqual(response.status_code, 400)
        upload.assert_not_called()


class PasswordResetViewTests(ApiTestCase):

    def setUp(self):
        cache.clear()

    def reset(self, user, password='NewPass2024'):
        return self.post_json(reverse('core:user_reset_password', args=[user.id]), {'new_password': password})

    def test_admin_resets_password(self):
        self.login_as(self.admin)
        response = self.reset(self.agent_one)
        self.assertEqual(response.status_code, 200, response.content)

        self.agent_one.refresh_from_db()
        self.assertTrue(self.agent_one.check_password('NewPass2024'))
        self.assertTrue(AuditLog.objects.filter(action='admin_password_reset',
                                                record_id=str(self.agent_one.id)).exists())

    def test_weak_password_rejected(self):
        self.login_as(self.admin)
        response = self.reset(self.agent_one, password='password')
        self.assertEqual(response.status_code, 400)
        self.assertIn('new_password', response.json()['errors'])

    def test_only_admin(self):
        self.login_as(self.manager)
        self.assertEqual(self.reset(self.agent_one).status_code, 403)

    @override_settings(COLLECT_PASSWORD_RESET_LIMIT=2)
    def test_rate_limited_per_admin(self):
        self.login_as(self.admin)
        self.assertEqual(self.reset(self.agent_one).status_code, 200)
        self.assertEqual(self.reset(self.agent_two).status_code, 200)
        self.assertEqual(self.reset(self.other_agent).status_code, 429)

        second_admin = self.make_user('Second Admin', '9000000009', 'admin')
        self.login_as(second_admin)
        self.assertEqual(self.reset(self.other_agent).status_code, 200)


class ToggleActiveViewTests(ApiTestCase):

    def test_deactivate_and_reactivate(self):
        self.login_as(self.admin)
        url = reverse('core:user_toggle_active', args=[self.agent_two.id])

        self.assertFalse(self.post_json(url).json()['is_active'])
        self.agent_two.refresh_from_db()
        self.assertIsNotNone(self.agent_two.deactivated_at)

        self.assertTrue(self.post_json(url).json()['is_active'])

    def test_cannot_deactivate_self(self):
        self.login_as(self.admin)
        response = self.post_json(reverse('core:user_toggle_active', args=[self.admin.id]))
        self.assertEqual(response.status_code, 400)

    def test_requires_user_delete_feature(self):
        FeaturePermission.objects.filter(feature_key=FeatureKeys.USER_DELETE).update(admin_access=False)
        self.login_as(self.admin)
        response = self.post_json(reverse('core:user_toggle_active', args=[self.agent_two.id]))
        self.assertEqual(response.status_code, 403)
        self.agent_two.refresh_from_db()
        self.assertTrue(self.agent_two.is_active)

    def test_manager_cannot_deactivate(self):
        self.login_as(self.manager)
        response = self.post_json(reverse('core:user_toggle_active', args=[self.agent_two.id]))
        self.assertEqual(response.status_code, 403)

    def test_deactivated_session_is_refused(self):
        self.login_as(self.agent_two)
        User.objects.filter(pk=self.agent_two.pk).update(is_active=False)
        self.assertEqual(self.client.get(reverse('core:me')).status_code, 401)


class FeaturePermissionViewTests(ApiTestCase):

    def test_admin_updates_feature(self):
        self.login_as(self.admin)
        response = self.post_json(
            reverse('core:feature_update', args=[FeatureKeys.CUSTOMER_UPDATE]), {'agent_access': True}
        )
        self.assertEqual(response.status_code, 200, response.content)
        feature = FeaturePermission.objects.get(feature_key=FeatureKeys.CUSTOMER_UPDATE)
        self.assertTrue(feature.agent_access)
        self.assertTrue(feature.manager_access)

        self.login_as(self.agent_one)
        response = self.client.get(reverse('core:feature_check'), {'feature': FeatureKeys.CUSTOMER_UPDATE})
        self.assertTrue(response.json()['allowed'])

    def test_unknown_feature_check_fails_closed(self):
        self.login_as(self.admin)
        response = self.client.get(reverse('core:feature_check'), {'feature': 'nonexistent_feature'})
        self.assertFalse(response.json()['allowed'])
        self.assertEqual(self.client.get(reverse('core:feature_check')).status_code, 400)

    def test_manager_cannot_update(self):
        self.login_as(self.manager)
        response = self.post_json(
            reverse('core:feature_update', args=[FeatureKeys.CUSTOMER_DELETE]), {'manager_access': True}
        )
        self.assertEqual(response.status_code, 403)

    def test_feature_list(self):
        self.login_as(self.agent_one)
        body = self.client.get(reverse('core:feature_list')).json()
        self.assertEqual(len(body['features']), FeaturePermission.objects.count())

    def test_audit_logs_admin_only(self):
        AuditLog.record(self.admin, 'customer_delete', 'customers', self.customer_a.id)
        self.login_as(self.manager)
        self.assertEqual(self.client.get(reverse('core:audit_log_list')).status_code, 403)

        self.login_as(self.admin)
        body = self.client.get(reverse('core:audit_log_list'), {'action': 'customer_delete'}).json()
        self.assertEqual(body['count'], 1)
