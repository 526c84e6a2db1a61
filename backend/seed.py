# Seed data - demo clients covering every classification
import logging

from models import Client, MeetingRecord, MeetingStatus
from store import list_clients, reset_store

logger = logging.getLogger(__name__)


def seed_clients():
    """Demo clients with fixed ids so tests and the demo UI can refer to them"""
    return [
        # On track: first two meetings done, rest pending
        Client(
            id="c-ana",
            name="Ana Souza",
            phoneDigits="4821",
            enrollmentMonth="2025-01",
            enrollmentDay=15,
            sequenceNumber=1,
            statusByMonth={
                "2025-01": MeetingRecord(MeetingStatus.DONE),
                "2025-02": MeetingRecord(MeetingStatus.DONE, customDate=18),
            },
        ),
        # Same enrollment month, second in sequence, meeting 1 never held
        Client(
            id="c-bruno",
            name="Bruno Lima",
            phoneDigits="7730",
            enrollmentMonth="2025-01",
            enrollmentDay=10,
            sequenceNumber=2,
            statusByMonth={
                "2025-02": MeetingRecord(MeetingStatus.NOT_DONE),
                "2025-03": MeetingRecord(MeetingStatus.RESCHEDULED, customDate=25),
            },
        ),
        # Contract closed after the cycle ended (month 8)
        Client(
            id="c-carla",
            name="Carla Mendes",
            phoneDigits="1190",
            enrollmentMonth="2025-01",
            enrollmentDay=5,
            sequenceNumber=3,
            statusByMonth={
                "2025-01": MeetingRecord(MeetingStatus.DONE),
                "2025-02": MeetingRecord(MeetingStatus.DONE),
                "2025-03": MeetingRecord(MeetingStatus.DONE),
                "2025-04": MeetingRecord(MeetingStatus.DONE),
                "2025-05": MeetingRecord(MeetingStatus.DONE),
                "2025-08": MeetingRecord(MeetingStatus.CLOSED_CONTRACT),
            },
        ),
        # Closed mid-cycle
        Client(
            id="c-diego",
            name="Diego Rocha",
            phoneDigits="3356",
            enrollmentMonth="2025-03",
            enrollmentDay=20,
            sequenceNumber=1,
            statusByMonth={
                "2025-03": MeetingRecord(MeetingStatus.DONE),
                "2025-04": MeetingRecord(MeetingStatus.CLOSED_CONTRACT),
            },
        ),
        # Fresh enrollment, no records yet
        Client(
            id="c-elisa",
            name="Elisa Prado",
            phoneDigits="9012",
            enrollmentMonth="2025-04",
            enrollmentDay=28,
            sequenceNumber=1,
            statusByMonth={},
        ),
    ]


def seed_data():
    """Reset the store to the demo clients"""
    reset_store(seed_clients())
    clients = list_clients()
    logger.info("Seed data initialized: %d clients", len(clients))
    for client in clients:
        logger.info(
            "  - %s (%s #%d, day %s): %d month record(s)",
            client.name,
            client.enrollmentMonth,
            client.sequenceNumber,
            client.enrollmentDay,
            len(client.statusByMonth),
        )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    seed_data()
