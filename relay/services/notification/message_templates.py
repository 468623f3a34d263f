"""Message templates for WhatsApp messages - separates formatting from transport."""

from typing import Optional

from .models import ApplicationStatus, InterviewType


class MessageTemplates:
    """Static message templates (Indonesian, WhatsApp markdown)."""

    @staticmethod
    def otp_code(app_name: str, code: str, ttl_minutes: int) -> str:
        """Template for a one-time verification code."""
        return (
            f"Kode verifikasi WhatsApp Anda untuk {app_name}: {code}\n\n"
            f"Kode ini akan kedaluwarsa dalam {ttl_minutes} menit.\n"
            "Jangan bagikan kode ini kepada siapa pun."
        )

    @staticmethod
    def application_status(
        applicant_name: str,
        job_title: str,
        company_name: str,
        status: ApplicationStatus,
        notes: Optional[str] = None,
    ) -> str:
        """Template for an application decision: congratulation or polite rejection."""
        if status is ApplicationStatus.ACCEPTED:
            message = f"""🎉 *Selamat {applicant_name}!*

Lamaran Anda untuk posisi *{job_title}* di *{company_name}* telah *DITERIMA*!

📧 Cek email Anda untuk informasi lebih lanjut."""
        else:
            message = f"""📋 *Update Lamaran - {company_name}*

Halo *{applicant_name}*,

Terima kasih atas minat Anda pada posisi *{job_title}*. Setelah evaluasi, kami informasikan bahwa lamaran Anda belum dapat kami proses lebih lanjut.

📧 Cek email Anda untuk informasi lebih lanjut."""

        return message + MessageTemplates._notes_block(notes)

    @staticmethod
    def interview_scheduled(
        applicant_name: str,
        job_title: str,
        company_name: str,
        interview_date: str,
        interview_time: str,
        interview_type: InterviewType,
        location: Optional[str] = None,
        meeting_link: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> str:
        """Template for an interview invitation."""
        if interview_type is InterviewType.ONLINE:
            venue = f"💻 *Jenis:* Online\n🔗 *Link Meeting:* {meeting_link}"
        else:
            venue = f"🏢 *Jenis:* Offline\n📍 *Lokasi:* {location}"

        message = f"""📅 *Jadwal Interview - {company_name}*

Halo *{applicant_name}*,

Interview Anda untuk posisi *{job_title}* di *{company_name}* telah dijadwalkan.

🗓️ *Tanggal:* {interview_date}
⏰ *Waktu:* {interview_time}
{venue}"""

        message += MessageTemplates._notes_block(notes)
        return message + "\n\nMohon hadir tepat waktu. Semoga sukses!"

    @staticmethod
    def _notes_block(notes: Optional[str]) -> str:
        if notes and notes.strip():
            return f"\n\n📝 *Catatan:* {notes.strip()}"
        return ""
