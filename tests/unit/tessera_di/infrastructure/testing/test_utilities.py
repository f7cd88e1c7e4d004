"""Unit tests for testing utilities."""

from tessera_di.application.container import Container
from tessera_di.domain import Lifetime
from tessera_di.infrastructure.testing.utilities import TestContainer, create_mock_container


class EmailService:
    pass


class MockEmailService:
    pass


class UserService:
    def __init__(self, email: EmailService):
        self.email = email


def make_container():
    return Container().register_type(EmailService, lifetime=Lifetime.SINGLETON).register_type(UserService)


class TestTestContainer:
    """Test cases for TestContainer."""

    def test_inherits_parent_registrations(self):
        """Test that the parent's registrations are available."""
        parent = make_container()
        test_container = TestContainer(parent)

        assert isinstance(test_container.resolve_sync(UserService).email, EmailService)

    def test_empty_without_parent(self):
        """Test that a test container can start empty."""
        assert TestContainer()._registrations == {}

    def test_mock_instance(self):
        """Test that mocked instances replace registrations."""
        mock_email = MockEmailService()
        test_container = TestContainer(make_container()).mock_instance(EmailService, mock_email)

        assert test_container.resolve_sync(UserService).email is mock_email
        assert test_container.overridden_keys == {"EmailService"}

    def test_mock_does_not_leak_into_parent(self):
        """Test that overrides stay in the test container."""
        parent = make_container()
        TestContainer(parent).mock_instance("EmailService", MockEmailService())

        assert isinstance(parent.resolve_sync(EmailService), EmailService)

    def test_singleton_built_with_mock_stays_out_of_parent(self):
        """Test that a singleton wired with a mock is not cached in the parent."""
        parent = Container().register_type(EmailService).register_type(UserService, lifetime=Lifetime.SINGLETON)
        mock_email = MockEmailService()
        test_container = TestContainer(parent).mock_instance(EmailService, mock_email)

        assert test_container.resolve_sync(UserService).email is mock_email
        assert parent.resolve_sync(UserService).email is not mock_email
        assert isinstance(parent.resolve_sync(UserService).email, EmailService)

    def test_parent_singleton_cached_before_snapshot_is_rebuilt(self):
        """Test that mocks apply even when the parent already cached the dependent."""
        parent = Container().register_type(EmailService).register_type(UserService, lifetime=Lifetime.SINGLETON)
        parent_service = parent.resolve_sync(UserService)
        mock_email = MockEmailService()
        test_container = TestContainer(parent).mock_instance(EmailService, mock_email)

        assert test_container.resolve_sync(UserService).email is mock_email
        assert parent.resolve_sync(UserService) is parent_service

    def test_reset_overrides_drops_singletons_built_with_mocks(self):
        """Test that reset does not keep singletons wired with removed mocks."""
        parent = Container().register_type(EmailService).register_type(UserService, lifetime=Lifetime.SINGLETON)
        test_container = TestContainer(parent).mock_instance(EmailService, MockEmailService())
        test_container.resolve_sync(UserService)
        test_container.reset_overrides()

        assert isinstance(test_container.resolve_sync(UserService).email, EmailService)

    def test_mock_factory_transient(self):
        """Test that mock factories build fresh mocks per resolution."""
        test_container = TestContainer(make_container()).mock_factory(EmailService, MockEmailService)

        first = test_container.resolve_sync(EmailService)
        second = test_container.resolve_sync(EmailService)

        assert isinstance(first, MockEmailService)
        assert first is not second

    def test_mock_factory_singleton(self):
        """Test that mock factories honour the given lifetime."""
        test_container = TestContainer(make_container()).mock_factory(
            EmailService, MockEmailService, lifetime=Lifetime.SINGLETON
        )

        assert test_container.resolve_sync(EmailService) is test_container.resolve_sync(EmailService)

    def test_reset_overrides_restores_parent_snapshot(self):
        """Test that reset brings back the parent's registrations."""
        test_container = TestContainer(make_container()).mock_instance(EmailService, MockEmailService())
        test_container.reset_overrides()

        assert isinstance(test_container.resolve_sync(EmailService), EmailService)
        assert test_container.overridden_keys == set()

    def test_reset_without_parent_clears(self):
        """Test that reset empties a parentless test container."""
        test_container = TestContainer().mock_instance("x", 1)
        test_container.reset_overrides()

        assert not test_container.is_registered("x")

    def test_context_manager_resets(self):
        """Test that leaving the context removes overrides."""
        with TestContainer(make_container()) as test_container:
            test_container.mock_instance(EmailService, MockEmailService())
            assert isinstance(test_container.resolve_sync(EmailService), MockEmailService)

        assert isinstance(test_container.resolve_sync(EmailService), EmailService)

    def test_child_of_test_container(self):
        """Test that test containers can fork children."""
        test_container = TestContainer(make_container())
        child = test_container.create_child_container()

        assert isinstance(child, TestContainer)
        assert child.is_registered(UserService)


class TestCreateMockContainer:
    """Test cases for create_mock_container."""

    def test_creates_container_with_mocks(self):
        """Test that all given mocks are registered."""
        mock_email = MockEmailService()
        container = create_mock_container((EmailService, mock_email), ("dsn", "sqlite://"))

        assert container.resolve_sync(EmailService) is mock_email
        assert container.resolve_sync("dsn") == "sqlite://"

    def test_with_parent(self):
        """Test that mocks are layered on top of a parent."""
        mock_email = MockEmailService()
        container = create_mock_container((EmailService, mock_email), parent=make_container())

        assert container.resolve_sync(UserService).email is mock_email
