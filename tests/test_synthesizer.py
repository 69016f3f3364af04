import base64

from api_tester.dispatch.models import AuthDirective, BasicAuth, BearerToken, UploadedFile
from api_tester.dispatch.synthesizer import RequestSynthesizer, split_parameters


class TestPrepareUrl:
    def test_relative_uri(self):
        assert RequestSynthesizer("http://app.test").prepare_url("/users") == "http://app.test/users"

    def test_base_url_trailing_slash(self):
        assert RequestSynthesizer("http://app.test/").prepare_url("/users/") == "http://app.test/users"

    def test_absolute_uri_kept(self):
        assert RequestSynthesizer("http://app.test").prepare_url("https://other.test/x/") == "https://other.test/x"

    def test_leading_slash_before_absolute(self):
        assert RequestSynthesizer("http://app.test").prepare_url("/http://other.test/x") == "http://other.test/x"


class TestSplitParameters:
    def test_scalars_and_files(self):
        avatar = UploadedFile(filename="a.png", content=b"png")
        scalars, files = split_parameters({"name": "bob", "avatar": avatar})
        assert scalars == {"name": "bob"}
        assert files == {"avatar": [avatar]}

    def test_duplicate_names_last_wins(self):
        scalars, files = split_parameters([("a", "1"), ("b", "2"), ("a", "3")])
        assert scalars == {"a": "3", "b": "2"}
        assert list(scalars) == ["a", "b"]

    def test_file_replaces_scalar_of_same_name(self):
        upload = UploadedFile(filename="x.txt")
        scalars, files = split_parameters([("doc", "text"), ("doc", upload)])
        assert scalars == {}
        assert files == {"doc": [upload]}

    def test_failed_uploads_are_dropped(self):
        ok = UploadedFile(filename="ok.txt")
        failed = UploadedFile(filename="", error=4)
        scalars, files = split_parameters({"docs": [ok, failed], "broken": failed})
        assert scalars == {}
        assert files == {"docs": [ok]}


class TestBuild:
    def test_always_accepts_json(self):
        request = RequestSynthesizer("http://app.test").build("get", "/users")
        assert request.method == "GET"
        assert request.url == "http://app.test/users"
        assert request.headers == {"Accept": "application/json"}

    def test_basic_auth(self):
        auth = AuthDirective(mode=BasicAuth(username="a", password="b"))
        request = RequestSynthesizer().build("GET", "/x", auth=auth)
        assert request.headers["Authorization"] == "Basic " + base64.b64encode(b"a:b").decode()

    def test_bearer_token(self):
        auth = AuthDirective(mode=BearerToken(token="t0k"))
        request = RequestSynthesizer().build("GET", "/x", auth=auth)
        assert request.headers["Authorization"] == "Bearer t0k"

    def test_no_auth(self):
        request = RequestSynthesizer().build("GET", "/x", auth=AuthDirective())
        assert "Authorization" not in request.headers


class TestAuthDirectiveFromForm:
    def test_basic_with_missing_password(self):
        auth = AuthDirective.from_form({"auth_type": "basic_auth", "basic_auth_username": "a"})
        assert auth.mode == BasicAuth(username="a", password="")

    def test_unknown_type_means_no_auth(self):
        auth = AuthDirective.from_form({"auth_type": "digest"})
        assert auth.mode.kind == "no_auth"

    def test_impersonation_is_independent(self):
        auth = AuthDirective.from_form({"auth_type": "bearer_token", "bearer_token_token": "t", "user": 7})
        assert auth.mode == BearerToken(token="t")
        assert auth.impersonated_user_id == "7"

    def test_empty_user(self):
        assert AuthDirective.from_form({"user": ""}).impersonated_user_id is None
