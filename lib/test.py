import pytest


class ViewTestMixin(object):
    """
    Automatically load in an app and client, this is common for a lot of
    view tests.
    """

    @pytest.fixture(autouse=True)
    def set_common_fixtures(self, app, client):
        self.app = app
        self.client = client

    @property
    def settings(self):
        return self.app.extensions["faults"].settings

    @property
    def pool(self):
        return self.app.extensions["faults"].pool
