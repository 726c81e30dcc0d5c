"""Configuration for the deployment notifier.

Key Components:
    - ActionInputs: Action inputs (INPUT_* variables or a YAML file)
    - CIContext: Values set by the GitHub Actions runner
    - RepositoryInfo: Identity of the triggering repository
    - NotifierSettings: All of the above, passed to every stage

Example:
    >>> from deploy_notifier.config.settings import NotifierSettings
    >>> settings = NotifierSettings.load()
    >>> settings.inputs.tag_name
    'production'
"""
