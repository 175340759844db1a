"""Exceptions raised while declaring or applying resources."""


class ValidationError(ValueError):
    """A declaration was given an invalid combination of parameters."""


class MissingTriggerError(ValidationError):
    """A present timer has none of the scheduling directives set."""


class MissingCommandError(ValidationError):
    """A present timer has no command for its service to run."""


class InvalidDropinNameError(ValidationError):
    """A tmpfile name does not match the drop-in pattern (``NAME.conf``)."""


class InvalidEnsureError(ValidationError):
    """`ensure` is not one of the values the declaration accepts."""


class InvalidPathError(ValidationError):
    """A directory parameter is not an absolute path."""


class DuplicateDeclarationError(ValueError):
    """A resource with the same reference is already in the catalog."""


class DependencyCycleError(ValueError):
    """The ordering edges of a catalog form a cycle."""


class ManifestError(ValueError):
    """A manifest document cannot be turned into declarations."""


class CommandError(RuntimeError):
    """A command run while applying a catalog exited with an error."""

    def __init__(self, args, returncode, stderr=''):
        self.command = list(args)
        self.returncode = returncode
        self.stderr = stderr
        message = f'{" ".join(self.command)!r} exited with {returncode}'
        if stderr:
            message += f': {stderr.strip()}'
        super().__init__(message)
