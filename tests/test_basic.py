"""Basic tests for the dbfacade package."""

import dbfacade


class TestPackageBasics:
    """Test basic package functionality."""

    def test_package_version(self) -> None:
        assert isinstance(dbfacade.__version__, str)
        assert len(dbfacade.__version__) > 0

    def test_package_exports(self) -> None:
        """Test that package exports the facade and error types."""
        for name in (
            "Database",
            "BackendConfig",
            "ConfigurationError",
            "DatabaseConnectionError",
            "CapabilityError",
            "ConstraintError",
            "QueryError",
        ):
            assert hasattr(dbfacade, name)

    def test_error_hierarchy(self) -> None:
        for error in (
            dbfacade.ConfigurationError,
            dbfacade.DatabaseConnectionError,
            dbfacade.ConstraintError,
            dbfacade.QueryError,
        ):
            assert issubclass(error, dbfacade.FacadeError)
        assert issubclass(dbfacade.CapabilityError, dbfacade.FacadeError)

    def test_capability_error_names_operation_and_class(self) -> None:
        error = dbfacade.CapabilityError("insert", dbfacade.DriverClass.KEY_VALUE)
        assert error.operation == "insert"
        assert error.driver_class is dbfacade.DriverClass.KEY_VALUE
        assert "insert" in str(error)
        assert "key-value" in str(error)
