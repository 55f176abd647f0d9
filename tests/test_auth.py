from conftest import page


def test_protected_page_redirects_to_login(anon_client):
    response = anon_client.get("/customers")
    assert response.status_code == 303
    assert response.headers["location"] == "/login"


def test_root_redirects_by_session(anon_client):
    assert anon_client.get("/").headers["location"] == "/login"
    anon_client.cookies.set("access_token", "tok")
    assert anon_client.get("/").headers["location"] == "/dashboard"


def test_login_page_renders(anon_client):
    response = anon_client.get("/login")
    assert response.status_code == 200
    assert 'name="username"' in response.text


def test_login_sets_session_cookies(anon_client, fake_api):
    fake_api.add("POST", "token/", {"access": "acc", "refresh": "ref"})

    response = anon_client.post("/auth/login", data={"username": "jdoe", "password": "secret"})

    assert response.status_code == 303
    assert response.headers["location"] == "/dashboard"
    cookies = " ".join(response.headers.get_list("set-cookie"))
    assert "access_token=" in cookies
    assert "refresh_token=ref" in cookies
    assert fake_api.called("POST", "token/") == [{"username": "jdoe", "password": "secret"}]


def test_login_invalid_credentials(anon_client, fake_api):
    fake_api.add("POST", "token/", {"detail": "No active account found"}, status=401)

    response = anon_client.post("/auth/login", data={"username": "jdoe", "password": "bad"})

    assert response.status_code == 401
    assert "Invalid username or password" in response.text
    assert 'value="jdoe"' in response.text


def test_login_requires_both_fields(anon_client, fake_api):
    response = anon_client.post("/auth/login", data={"username": "jdoe", "password": ""})
    assert response.status_code == 401
    assert "Username and password are required" in response.text
    assert fake_api.called("POST", "token/") == []


def test_logout_clears_cookies(login_as):
    client = login_as("MANAGER")
    response = client.get("/auth/logout")
    assert response.status_code == 303
    assert response.headers["location"] == "/login"
    cookies = " ".join(response.headers.get_list("set-cookie"))
    assert 'access_token=""' in cookies or "access_token=;" in cookies


def test_expired_session_goes_to_login(login_as, fake_api):
    client = login_as("MANAGER")
    fake_api.add("GET", "users/me/", {"detail": "Token is invalid or expired"}, status=401)
    fake_api.add("POST", "token/refresh/", {"detail": "Token is invalid or expired"}, status=401)

    response = client.get("/dashboard")

    assert response.status_code == 303
    assert response.headers["location"] == "/login"
    assert len(fake_api.called("POST", "token/refresh/")) == 1


def test_expired_session_htmx_redirect(login_as, fake_api):
    client = login_as("MANAGER")
    fake_api.add("GET", "users/me/", {"detail": "expired"}, status=401)

    response = client.get("/customers", headers={"HX-Request": "true"})

    assert response.status_code == 200
    assert response.headers["HX-Redirect"] == "/login"


def test_dashboard_renders(login_as, fake_api):
    client = login_as("MANAGER")
    fake_api.add("GET", "loans/", page())
    fake_api.add("GET", "customers/", page())
    fake_api.add("GET", "follow-ups/", page())

    response = client.get("/dashboard")

    assert response.status_code == 200
    assert "/reports/loans" in response.text
