"""Example showing a branching automation run against in-memory services."""

import asyncio
import logging

from flowrun import App, AutomationOrchestrator, build_services, get_repository
from flowrun.services import IntegrationRegistry


async def send_email(action, connection):
    print(f"📧 {connection.name}: sending '{action.params['subject']}' to {action.params['to']}")
    return {"delivered": True}


APP = App(
    name="signup",
    tables=[{"id": 1, "name": "contacts"}],
    connections=[{"id": 1, "name": "mailer", "service": "email"}],
    automations=[
        {
            "id": 1,
            "name": "welcome",
            "trigger": {"service": "http", "event": "post", "params": {"path": "/signup"}},
            "actions": [
                {
                    "name": "save_contact",
                    "service": "database",
                    "action": "create-record",
                    "params": {
                        "table": "contacts",
                        "fields": {
                            "email": "{{ trigger.body.email }}",
                            "plan": "{{ trigger.body.plan }}",
                        },
                    },
                },
                {
                    "name": "by-plan",
                    "service": "filter",
                    "action": "split-into-paths",
                    "params": [
                        {
                            "name": "premium",
                            "filter": {
                                "target": "{{ trigger.body.plan }}",
                                "operator": "equals",
                                "value": "premium",
                            },
                            "actions": [
                                {
                                    "name": "vip-email",
                                    "service": "email",
                                    "action": "send",
                                    "account": "mailer",
                                    "params": {
                                        "to": "{{ save_contact.fields.email }}",
                                        "subject": "Welcome aboard, VIP",
                                    },
                                }
                            ],
                        },
                        {
                            "name": "free",
                            "filter": {
                                "target": "{{ trigger.body.plan }}",
                                "operator": "does-not-equal",
                                "value": "premium",
                            },
                            "actions": [
                                {
                                    "name": "welcome-email",
                                    "service": "email",
                                    "action": "send",
                                    "account": "mailer",
                                    "params": {
                                        "to": "{{ trigger.body.email }}",
                                        "subject": "Welcome",
                                    },
                                }
                            ],
                        },
                    ],
                },
            ],
        }
    ],
)


async def main():
    logging.basicConfig(level=logging.INFO)

    integrations = IntegrationRegistry()
    integrations.register("email", send_email)
    orchestrator = AutomationOrchestrator(
        build_services(integrations=integrations), get_repository()
    )

    automation = APP.find_automation("welcome")
    run = await orchestrator.trigger(
        APP, automation, {"body": {"email": "ada@example.com", "plan": "premium"}}
    )

    print(f"✅ Run {run.id} finished with status {run.status}")
    print(f"📋 Outputs: {run.get_steps_output()}")


if __name__ == "__main__":
    asyncio.run(main())
