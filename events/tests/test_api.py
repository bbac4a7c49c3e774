from django.core.cache import cache
from django.test import override_settings
from rest_framework.test import APITestCase, APIClient
from rest_framework import status

from events.models import Event, Invitation, Registration

from .helpers import make_event, make_student, register


class ParticipationApiTestCase(APITestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.event = make_event(min_team_size=2, max_team_size=3, attendance_code="4821", is_feedback_open=True)
        self.leader = make_student("leader", roll_no="CB.EN.U4AIE21001")
        self.member = make_student("member", roll_no="CB.EN.U4AIE21002", display_name="Mira")

    def auth(self, user):
        self.client.force_authenticate(user=user)

    def assertError(self, resp, status_code, code):
        self.assertEqual(resp.status_code, status_code)
        body = resp.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["status_code"], status_code)
        self.assertEqual(body["errors"]["code"], code)


class RegistrationApiTests(ParticipationApiTestCase):
    def test_register_team(self):
        self.auth(self.leader)
        resp = self.client.post(
            f"/api/events/{self.event.pk}/register/",
            {"team_name": "Falcons", "team_members": [{"name": "Asha", "roll_no": "CB.EN.U4AIE21050"}]},
            format="json",
        )

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        data = resp.json()
        self.assertEqual(data["team_name"], "Falcons")
        self.assertEqual(data["status"], Registration.STATUS_REGISTERED)
        self.assertEqual(data["team_size"], 2)

    def test_register_team_with_unknown_member_account(self):
        self.auth(self.leader)
        resp = self.client.post(
            f"/api/events/{self.event.pk}/register/",
            {"team_name": "Falcons", "team_members": [{"roll_no": "X1", "member_user_id": 999999}]},
            format="json",
        )

        self.assertError(resp, status.HTTP_404_NOT_FOUND, "user_not_found")
        self.assertFalse(Registration.objects.filter(event=self.event).exists())

    def test_register_team_with_member_account_uses_profile_roll_number(self):
        self.auth(self.leader)
        resp = self.client.post(
            f"/api/events/{self.event.pk}/register/",
            {"team_name": "Falcons", "team_members": [{"member_user_id": self.member.pk}]},
            format="json",
        )

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.json()["team_members"][0]["roll_no"], "CB.EN.U4AIE21002")
        self.assertIn(self.member.pk, resp.json()["participant_ids"])

    def test_register_twice_is_conflict(self):
        self.auth(self.leader)
        self.client.post(f"/api/events/{self.event.pk}/register/", {}, format="json")
        resp = self.client.post(f"/api/events/{self.event.pk}/register/", {}, format="json")
        self.assertError(resp, status.HTTP_409_CONFLICT, "already_registered")

    def test_register_unknown_event(self):
        self.auth(self.leader)
        resp = self.client.post("/api/events/9999/register/", {}, format="json")
        self.assertError(resp, status.HTTP_404_NOT_FOUND, "event_not_found")

    def test_members_without_team_name_is_bad_request(self):
        self.auth(self.leader)
        resp = self.client.post(
            f"/api/events/{self.event.pk}/register/",
            {"team_members": [{"name": "Asha", "roll_no": "X1"}]},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_my_registration_as_member(self):
        reg_id = register(self.event, self.leader, team_name="Falcons")
        invite = Invitation.objects.create(
            kind=Invitation.KIND_INVITE,
            event=self.event,
            event_title=self.event.title,
            team_name="Falcons",
            registration_id=reg_id,
            sender=self.leader,
            sender_name="Leader",
            target=self.member,
            target_name="Mira",
            target_roll_no=self.member.roll_no,
        )
        self.auth(self.member)
        self.client.post(f"/api/events/invitations/{invite.pk}/respond/", {"decision": "accept"}, format="json")

        resp = self.client.get(f"/api/events/{self.event.pk}/registration/")

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        data = resp.json()
        self.assertTrue(data["registered"])
        self.assertEqual(data["role"], "member")
        self.assertFalse(data["is_attended"])
        self.assertEqual(data["registration"]["id"], reg_id)

    def test_my_registration_absent(self):
        self.auth(self.member)
        resp = self.client.get(f"/api/events/{self.event.pk}/registration/")
        self.assertEqual(resp.json(), {"registered": False})

    def test_registration_list_is_organizer_only(self):
        register(self.event, self.leader)
        self.auth(self.member)
        resp = self.client.get(f"/api/events/{self.event.pk}/registrations/")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

        organizer = make_student("organizer", role="organizer")
        self.auth(organizer)
        resp = self.client.get(f"/api/events/{self.event.pk}/registrations/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json()["count"], 1)

    def test_anonymous_is_rejected(self):
        resp = self.client.post(f"/api/events/{self.event.pk}/register/", {}, format="json")
        self.assertIn(resp.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))
        self.assertFalse(resp.json()["success"])


class InvitationApiTests(ParticipationApiTestCase):
    def setUp(self):
        super().setUp()
        self.reg_id = register(self.event, self.leader, team_name="Falcons")

    def test_invite_accept_flow(self):
        self.auth(self.leader)
        resp = self.client.post(
            f"/api/events/{self.event.pk}/invitations/",
            {"target_user_id": self.member.pk},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        invitation_id = resp.json()["id"]
        self.assertEqual(resp.json()["target_roll_no"], "CB.EN.U4AIE21002")

        resp = self.client.get(f"/api/events/{self.event.pk}/invitations/status/{self.member.pk}/")
        self.assertEqual(resp.json()["status"], "pending")

        self.auth(self.member)
        resp = self.client.get("/api/events/invitations/pending/")
        self.assertEqual([i["id"] for i in resp.json()], [invitation_id])

        resp = self.client.post(
            f"/api/events/invitations/{invitation_id}/respond/", {"decision": "accept"}, format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json()["invitation"]["status"], "accepted")

        registration = Registration.objects.get(pk=self.reg_id)
        self.assertEqual(registration.participant_ids, [self.leader.pk, self.member.pk])
        self.assertEqual(registration.status, Registration.STATUS_REGISTERED)

    def test_invite_without_team(self):
        self.auth(self.member)
        resp = self.client.post(
            f"/api/events/{self.event.pk}/invitations/",
            {"target_user_id": self.leader.pk},
            format="json",
        )
        self.assertError(resp, status.HTTP_404_NOT_FOUND, "registration_not_found")

    def test_invite_unknown_student(self):
        self.auth(self.leader)
        resp = self.client.post(f"/api/events/{self.event.pk}/invitations/", {"target_user_id": 9999}, format="json")
        self.assertError(resp, status.HTTP_404_NOT_FOUND, "user_not_found")

    def test_leader_cannot_answer_own_invite(self):
        self.auth(self.leader)
        resp = self.client.post(
            f"/api/events/{self.event.pk}/invitations/", {"target_user_id": self.member.pk}, format="json",
        )
        resp = self.client.post(
            f"/api/events/invitations/{resp.json()['id']}/respond/", {"decision": "accept"}, format="json",
        )
        self.assertError(resp, status.HTTP_403_FORBIDDEN, "not_allowed")

    def test_join_request_flow(self):
        self.auth(self.member)
        resp = self.client.get(f"/api/events/{self.event.pk}/teams/available/")
        self.assertEqual([t["id"] for t in resp.json()], [self.reg_id])

        resp = self.client.post(f"/api/events/{self.event.pk}/teams/{self.reg_id}/join-requests/", {}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        request_id = resp.json()["id"]
        self.assertEqual(resp.json()["kind"], Invitation.KIND_REQUEST)

        resp = self.client.get(f"/api/events/{self.event.pk}/teams/available/")
        self.assertEqual(resp.json(), [])

        self.auth(self.leader)
        resp = self.client.get(f"/api/events/{self.event.pk}/invitations/sent/")
        self.assertEqual([i["id"] for i in resp.json()], [request_id])

        resp = self.client.post(f"/api/events/invitations/{request_id}/respond/", {"decision": "reject"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertIsNone(resp.json()["invitation"])
        self.assertEqual(Registration.objects.get(pk=self.reg_id).pending_requests, [])

    def test_bad_decision(self):
        self.auth(self.member)
        resp = self.client.post("/api/events/invitations/1/respond/", {"decision": "maybe"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)


@override_settings(PARTICIPATION_SEARCH_MIN_LENGTH=2)
class StudentSearchApiTests(ParticipationApiTestCase):
    def test_search(self):
        self.auth(self.leader)
        resp = self.client.get("/api/events/students/search/", {"q": "mi"})
        self.assertEqual([c["id"] for c in resp.json()], [self.member.pk])
        self.assertEqual(resp.json()[0]["name"], "Mira")

        resp = self.client.get("/api/events/students/search/", {"q": "m"})
        self.assertEqual(resp.json(), [])


class CheckInApiTests(ParticipationApiTestCase):
    def setUp(self):
        super().setUp()
        register(self.event, self.member)
        self.auth(self.member)

    def checkin(self, **body):
        return self.client.post("/api/events/checkin/", body, format="json")

    def test_contract(self):
        resp = self.checkin(event_id=self.event.pk, user_id=self.member.pk, code="0000")
        self.assertError(resp, status.HTTP_403_FORBIDDEN, "incorrect_code")

        resp = self.checkin(event_id=self.event.pk, user_id=self.member.pk, code="4821")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json(), {"success": True})

        resp = self.checkin(event_id=self.event.pk, user_id=self.member.pk, code="4821")
        self.assertError(resp, status.HTTP_400_BAD_REQUEST, "already_checked_in")

    def test_missing_fields(self):
        resp = self.checkin(event_id=self.event.pk, code="4821")
        self.assertError(resp, status.HTTP_400_BAD_REQUEST, "missing_fields")

    def test_unknown_event(self):
        resp = self.checkin(event_id=9999, user_id=self.member.pk, code="4821")
        self.assertError(resp, status.HTTP_404_NOT_FOUND, "event_not_found")

    def test_attendance_not_active(self):
        Event.objects.filter(pk=self.event.pk).update(attendance_code="")
        resp = self.checkin(event_id=self.event.pk, user_id=self.member.pk, code="4821")
        self.assertError(resp, status.HTTP_400_BAD_REQUEST, "attendance_not_active")

    def test_not_registered(self):
        self.auth(self.leader)
        resp = self.checkin(event_id=self.event.pk, user_id=self.leader.pk, code="4821")
        self.assertError(resp, status.HTTP_403_FORBIDDEN, "not_registered")

    def test_cannot_check_in_someone_else(self):
        resp = self.checkin(event_id=self.event.pk, user_id=self.leader.pk, code="4821")
        self.assertError(resp, status.HTTP_403_FORBIDDEN, "not_allowed")

    def test_numeric_code(self):
        resp = self.checkin(event_id=str(self.event.pk), user_id=str(self.member.pk), code=4821)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)

    def test_guessing_is_throttled(self):
        codes = []
        for _ in range(11):
            codes.append(self.checkin(event_id=self.event.pk, user_id=self.member.pk, code="0000").status_code)
        self.assertEqual(codes[-1], status.HTTP_429_TOO_MANY_REQUESTS)


class FeedbackApiTests(ParticipationApiTestCase):
    def test_submit(self):
        register(self.event, self.member)
        self.auth(self.member)

        resp = self.client.post(
            f"/api/events/{self.event.pk}/feedback/",
            {"overall_rating": 5, "matrix_ratings": {"content": 4}, "opinion": "Great"},
            format="json",
        )

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.json()["overall_rating"], 5)
        self.event.refresh_from_db()
        self.assertEqual(self.event.feedback_count, 1)

        resp = self.client.post(f"/api/events/{self.event.pk}/feedback/", {"overall_rating": 3}, format="json")
        self.assertError(resp, status.HTTP_409_CONFLICT, "feedback_already_submitted")

    def test_out_of_range(self):
        register(self.event, self.member)
        self.auth(self.member)
        resp = self.client.post(f"/api/events/{self.event.pk}/feedback/", {"overall_rating": 9}, format="json")
        self.assertError(resp, status.HTTP_400_BAD_REQUEST, "invalid_rating")
