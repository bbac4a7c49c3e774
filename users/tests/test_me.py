from django.test import TestCase
from rest_framework.test import APIClient
from rest_framework import status

from users.models import User


class MeApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(username="asha", password="pass", role="student")
        self.client.force_authenticate(user=self.user)

    def test_get_me(self):
        resp = self.client.get("/api/users/me/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json()["username"], "asha")
        self.assertFalse(resp.json()["is_verified"])

    def test_patch_profile_normalizes_roll_number(self):
        resp = self.client.patch(
            "/api/users/me/",
            {"display_name": "Asha", "roll_no": " cb.en.u4aie21003 ", "mobile": " 9000000003 "},
            format="json",
        )

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.roll_no, "CB.EN.U4AIE21003")
        self.assertEqual(self.user.mobile, "9000000003")
        self.assertEqual(self.user.name, "Asha")

    def test_cannot_verify_self(self):
        self.client.patch("/api/users/me/", {"is_verified": True, "role": "admin"}, format="json")
        self.user.refresh_from_db()
        self.assertFalse(self.user.is_verified)
        self.assertEqual(self.user.role, "student")

    def test_is_organizer(self):
        self.assertFalse(self.user.is_organizer)
        self.user.role = "organizer"
        self.assertTrue(self.user.is_organizer)
