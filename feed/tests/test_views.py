import json
import os

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import override_settings
from django.test.client import BOUNDARY, MULTIPART_CONTENT, encode_multipart

from feed.store import COMMENTS, MESSAGES, POSTS, USERS
from feed.tests.base import FeedTestCase, make_comment, make_message, make_post, make_user, ts


def image(name='photo.PNG'):
    return SimpleUploadedFile(name, b'\x89PNG\r\n\x1a\n', content_type='image/png')


@override_settings(SECURE_SSL_REDIRECT=False)
class FeedAPITestCase(FeedTestCase):

    def post_json(self, url, data):
        return self.client.post(url, data=json.dumps(data), content_type='application/json')

    def patch_json(self, url, data):
        return self.client.patch(url, data=json.dumps(data), content_type='application/json')

    def login_as(self, email):
        self.client.cookies['email'] = email

    def assertError(self, response, status, code):
        self.assertEqual(response.status_code, status)
        self.assertEqual(response.json()['error'], code)


class PingTests(FeedAPITestCase):

    def test_ping(self):
        body = self.client.get('/__ping').json()
        self.assertTrue(body['ok'])
        self.assertIsInstance(body['ts'], int)


class RenameScenarioTests(FeedAPITestCase):

    def test_rename_reaches_old_posts(self):
        response = self.post_json('/api/register', {'email': 'Bob@Mail.com', 'password': 'p1', 'nickname': 'Bob'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['user']['email'], 'bob@mail.com')

        response = self.post_json('/api/login', {'email': 'bob%40mail.com', 'password': 'p1'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.cookies['email'].value, 'bob@mail.com')

        response = self.post_json('/api/posts', {'title': 'Hello', 'category': 'life'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['authorName'], 'Bob')

        listed = self.client.get('/api/posts', {'category': 'life'}).json()
        self.assertEqual([p['authorName'] for p in listed], ['Bob'])

        response = self.patch_json('/api/users/me/profile', {'nickname': 'Bobby'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['nickname'], 'Bobby')

        listed = self.client.get('/api/posts').json()
        self.assertEqual([p['authorName'] for p in listed], ['Bobby'])
        self.assertEqual(self.store.load(POSTS)[0]['authorName'], 'Bob')


class AccountViewTests(FeedAPITestCase):

    def setUp(self):
        super().setUp()
        self.seed(users=[make_user('bob@mail.com', nickname='Bob', password='p1')])

    def test_register_conflict_and_missing_fields(self):
        self.assertError(self.post_json('/api/register', {'email': 'BOB%40mail.com', 'password': 'x'}), 409, 'CONFLICT')
        self.assertError(self.post_json('/api/register', {'email': 'new@mail.com'}), 400, 'BAD_REQUEST')

    def test_register_with_form_data(self):
        response = self.client.post('/api/register', {'email': 'Ann@Mail.com', 'password': 'pw'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['user']['nickname'], 'ann')

    def test_register_coerces_non_string_fields(self):
        response = self.post_json('/api/register', {'email': 'n@x.com', 'password': 'p', 'nickname': 5, 'area': 7})
        self.assertEqual(response.status_code, 200)
        user = response.json()['user']
        self.assertEqual(user['nickname'], '5')
        self.assertEqual(user['area'], '7')

    def test_malformed_json(self):
        response = self.client.post('/api/register', data='{oops', content_type='application/json')
        self.assertError(response, 400, 'BAD_REQUEST')

    def test_bad_login(self):
        response = self.post_json('/api/login', {'email': 'bob@mail.com', 'password': 'nope'})
        self.assertError(response, 401, 'NOT_LOGIN')
        self.assertNotIn('email', response.cookies)

    def test_me_and_logout(self):
        self.assertError(self.client.get('/api/users/me'), 401, 'NOT_LOGIN')

        self.login_as('Bob%40Mail.com')
        me = self.client.get('/api/users/me').json()
        self.assertEqual(me['nickname'], 'Bob')
        self.assertNotIn('password', me)

        self.client.post('/api/logout')
        self.assertError(self.client.get('/api/users/me'), 401, 'NOT_LOGIN')

    def test_me_for_deleted_user(self):
        self.login_as('ghost@mail.com')
        self.assertError(self.client.get('/api/users/me'), 404, 'NOT_FOUND')

    def test_user_by_email(self):
        self.assertEqual(self.client.get('/api/users/by-email', {'email': 'BOB@mail.com'}).json()['nickname'], 'Bob')
        self.assertError(self.client.get('/api/users/by-email'), 400, 'BAD_REQUEST')
        self.assertError(self.client.get('/api/users/by-email', {'email': 'x@x.com'}), 404, 'NOT_FOUND')

    def test_profile_requires_nonempty_nickname(self):
        self.login_as('bob@mail.com')
        self.assertError(self.patch_json('/api/users/me/profile', {'nickname': ' '}), 400, 'BAD_REQUEST')

    def test_profile_patch_with_multipart_body(self):
        self.login_as('bob@mail.com')
        response = self.client.patch(
            '/api/users/me/profile',
            data=encode_multipart(BOUNDARY, {'nickname': 'Bobby', 'degree': 'MSc'}),
            content_type=MULTIPART_CONTENT,
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['nickname'], 'Bobby')
        stored = self.store.load(USERS)[0]
        self.assertEqual((stored['nickname'], stored['degree']), ('Bobby', 'MSc'))

    def test_profile_patch_with_urlencoded_body(self):
        self.login_as('bob@mail.com')
        response = self.client.patch(
            '/api/users/me/profile',
            data='nickname=Robert',
            content_type='application/x-www-form-urlencoded',
        )
        self.assertEqual(response.json()['nickname'], 'Robert')

    def test_avatar_upload(self):
        self.login_as('bob@mail.com')
        response = self.client.post('/api/users/me/avatar', {'avatar': image('me.JPEG')})
        self.assertEqual(response.status_code, 200)
        path = response.json()['avatarPath']
        self.assertTrue(path.startswith('/uploads/'))
        self.assertTrue(path.endswith('.jpeg'))
        self.assertEqual(self.store.load(USERS)[0]['avatarPath'], path)
        self.assertTrue(os.path.exists(os.path.join(self.data_dir, 'uploads', path.rsplit('/', 1)[1])))

    def test_avatar_upload_rejections(self):
        self.assertError(self.client.post('/api/users/me/avatar', {'avatar': image()}), 401, 'NOT_LOGIN')

        self.login_as('bob@mail.com')
        self.assertError(self.client.post('/api/users/me/avatar', {}), 400, 'BAD_REQUEST')

        self.login_as('ghost@mail.com')
        self.assertError(self.client.post('/api/users/me/avatar', {'avatar': image()}), 404, 'NOT_FOUND')
        self.assertFalse(os.path.exists(os.path.join(self.data_dir, 'uploads')))


class PostViewTests(FeedAPITestCase):

    def setUp(self):
        super().setUp()
        self.seed(users=[make_user('bob@mail.com', nickname='Bob')])

    def test_publish_with_images(self):
        self.login_as('bob@mail.com')
        response = self.client.post('/api/posts', {'title': 'Pics', 'images': [image('a.png'), image('b')]})
        self.assertEqual(response.status_code, 200)
        images = response.json()['images']
        self.assertEqual(len(images), 2)
        self.assertTrue(images[0].endswith('.png'))
        self.assertTrue(images[1].endswith('.jpg'))

    @override_settings(FEED_MAX_UPLOADS=2)
    def test_too_many_images(self):
        self.login_as('bob@mail.com')
        response = self.client.post('/api/posts', {'title': 'x', 'images': [image(), image(), image()]})
        self.assertError(response, 400, 'BAD_REQUEST')
        self.assertEqual(self.store.load(POSTS), [])

    def test_post_detail(self):
        self.seed(posts=[make_post('p1', 'bob@mail.com', author_name='Old')])
        self.assertEqual(self.client.get('/api/posts/p1').json()['authorName'], 'Bob')
        self.assertError(self.client.get('/api/posts/nope'), 404, 'NOT_FOUND')

    def test_method_not_allowed(self):
        self.assertEqual(self.client.delete('/api/posts').status_code, 405)


class CommentViewTests(FeedAPITestCase):

    def setUp(self):
        super().setUp()
        self.seed(
            users=[make_user('bob@mail.com', nickname='Bob'), make_user('alice@mail.com', nickname='Alice')],
            posts=[make_post('p1', 'alice@mail.com')],
            comments=[make_comment(f"c{i}", 'p1', 'bob@mail.com', ts(i)) for i in range(12)],
        )

    def test_list_paginates(self):
        body = self.client.get('/api/posts/p1/comments').json()
        self.assertEqual(body['total'], 12)
        self.assertEqual(len(body['items']), 10)
        self.assertEqual(body['items'][0]['id'], 'c11')
        self.assertEqual(body['items'][0]['user']['name'], 'Bob')

        body = self.client.get('/api/posts/p1/comments', {'offset': 10, 'limit': 10}).json()
        self.assertEqual([c['id'] for c in body['items']], ['c1', 'c0'])

    def test_bad_paging_values_use_defaults(self):
        body = self.client.get('/api/posts/p1/comments', {'offset': '-4', 'limit': 'abc'}).json()
        self.assertEqual(body['items'][0]['id'], 'c11')
        self.assertEqual(len(body['items']), 10)

        body = self.client.get('/api/posts/p1/comments', {'limit': '0'}).json()
        self.assertEqual(len(body['items']), 10)

    def test_create_and_delete(self):
        self.assertError(self.post_json('/api/posts/p1/comments', {'content': 'hi'}), 401, 'NOT_LOGIN')

        self.login_as('bob@mail.com')
        self.assertError(self.post_json('/api/posts/p1/comments', {'content': ''}), 400, 'BAD_REQUEST')
        self.assertError(self.post_json('/api/posts/nope/comments', {'content': 'x'}), 404, 'NOT_FOUND')

        created = self.post_json('/api/posts/p1/comments', {'content': 'hello'}).json()
        self.assertEqual(created['user']['name'], 'Bob')
        self.assertEqual(self.store.load(COMMENTS)[0]['id'], created['id'])

        self.login_as('carol@mail.com')
        self.assertError(self.client.delete(f"/api/posts/p1/comments/{created['id']}"), 403, 'FORBIDDEN')

        self.login_as('alice@mail.com')
        response = self.client.delete(f"/api/posts/p1/comments/{created['id']}")
        self.assertEqual(response.status_code, 200)
        self.assertNotIn(created['id'], [c['id'] for c in self.store.load(COMMENTS)])

        self.assertError(self.client.delete(f"/api/posts/p1/comments/{created['id']}"), 404, 'NOT_FOUND')


class MessageViewTests(FeedAPITestCase):

    def test_requires_identity(self):
        self.assertError(self.client.get('/api/messages', {'peer': 'b@x.com'}), 401, 'NOT_LOGIN')
        self.assertError(self.client.get('/api/messages/threads'), 401, 'NOT_LOGIN')

    def test_history_needs_peer(self):
        self.login_as('a@x.com')
        response = self.client.get('/api/messages')
        self.assertError(response, 400, 'BAD_REQUEST')
        self.assertEqual(response.json()['reason'], 'PEER_REQUIRED')

    def test_image_only_message(self):
        self.login_as('a@x.com')
        response = self.client.post('/api/messages', {'toEmail': 'B%40X.com', 'images': [image()]})
        self.assertEqual(response.status_code, 200)
        message = response.json()
        self.assertEqual(message['to'], 'b@x.com')
        self.assertEqual(message['text'], '')
        self.assertEqual(len(message['images']), 1)
        self.assertEqual(self.store.load(MESSAGES)[0]['id'], message['id'])

    def test_rejected_send_stores_nothing(self):
        self.login_as('a@x.com')
        response = self.client.post('/api/messages', {'toEmail': '', 'text': 'hi', 'images': [image()]})
        self.assertError(response, 400, 'BAD_REQUEST')
        self.assertEqual(response.json()['reason'], 'toEmail missing')
        self.assertFalse(os.path.exists(os.path.join(self.data_dir, 'uploads')))

        response = self.post_json('/api/messages', {'toEmail': 'b@x.com', 'text': '  '})
        self.assertEqual(response.json()['reason'], 'empty text & no images')
        self.assertEqual(self.store.load(MESSAGES), [])

    def test_history_and_threads(self):
        self.seed(messages=[
            make_message('m1', 'a@x.com', 'b@x.com', ts(0), 'hi b'),
            make_message('m2', 'c@x.com', 'a@x.com', ts(1), 'hi a'),
            make_message('m3', 'b@x.com', 'a@x.com', ts(2), 'yo'),
        ])
        self.login_as('A@X.com')

        history = self.client.get('/api/messages', {'peer': 'b@x.com'}).json()
        self.assertEqual([m['id'] for m in history], ['m1', 'm3'])

        threads = self.client.get('/api/messages/threads').json()
        self.assertEqual(threads, [
            {'peer': 'b@x.com', 'last': 'yo', 'time': ts(2)},
            {'peer': 'c@x.com', 'last': 'hi a', 'time': ts(1)},
        ])
