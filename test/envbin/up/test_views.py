from flask import url_for

from lib.test import ViewTestMixin


class TestProbes(ViewTestMixin):
    def test_healthz_ok_by_default(self):
        response = self.client.get(url_for("up.healthz"))

        assert response.status_code == 200
        assert response.data == b"ok"

    def test_healthz_follows_setting(self):
        self.client.post(url_for("api.health", value="false"))

        response = self.client.get(url_for("up.healthz"))

        assert response.status_code == 500
        assert response.data == b"error"

    def test_live_follows_setting(self):
        self.client.post(url_for("api.liveness", value="f"))
        assert self.client.get(url_for("up.live")).status_code == 500

        self.client.post(url_for("api.liveness", value="t"))
        assert self.client.get(url_for("up.live")).status_code == 200

    def test_probes_ignore_injected_faults(self):
        self.settings.set("error_rate", "1.0")
        self.settings.set("delay", "60")

        assert self.client.get(url_for("up.healthz")).status_code == 200
        assert self.client.get(url_for("up.live")).status_code == 200
